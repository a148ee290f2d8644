"""
HQMX Storage Gateway - persistence and retrieval of finished media downloads.

This package contains the complete service:
- core: Framework-agnostic artifact models and key scheme
- infrastructure: Object store clients and the storage gateway
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
