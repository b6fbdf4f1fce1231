"""Application bootstrap and configuration."""
