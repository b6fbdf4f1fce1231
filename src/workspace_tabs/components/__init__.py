"""Reusable, Qt-free UI building blocks."""
