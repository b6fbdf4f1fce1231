"""Interaction design helpers (drag & keyboard tab reordering)."""
