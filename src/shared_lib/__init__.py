"""
Shared Library - Common components used across all packages.

Settings, data schemas, logging, JSON helpers, the subscription hub and the
clients for external services.
"""

__all__ = [
    "clients",
    "core",
    "models",
    "utils",
]
