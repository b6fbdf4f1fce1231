"""Headless view models backing the Qt widgets."""
