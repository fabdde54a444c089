"""Pipeline graph configuration."""
