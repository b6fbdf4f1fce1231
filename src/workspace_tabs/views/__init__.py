"""PyQt6 widgets (import explicitly; importing this package does not load Qt)."""
