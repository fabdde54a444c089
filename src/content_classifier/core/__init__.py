"""Content classifier configuration."""
