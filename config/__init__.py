"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    get_connection: Function to open a database connection
    check_connection: Health check function
    init_schema: Create the products table if missing
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_connection,
    check_connection,
    init_schema,
    DatabaseSession,
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Database
    "get_connection",
    "check_connection",
    "init_schema",
    "DatabaseSession",
]
