"""Data-access helper for relational test fixtures.

Single source of truth for the package version and the public surface.
"""

from fixturedb.connection_manager import ConnectionManager
from fixturedb.data_manager import NO_GENERATED_KEY, FixtureDataManager
from fixturedb.errors import AppError, ConfigError, DatabaseConnectionError, ExecutionError, PreconditionError

PACKAGE_VERSION = "0.1.0"  # Keep in sync with pyproject version.

__all__ = [
    "PACKAGE_VERSION",
    "AppError",
    "ConfigError",
    "ConnectionManager",
    "DatabaseConnectionError",
    "ExecutionError",
    "FixtureDataManager",
    "NO_GENERATED_KEY",
    "PreconditionError",
]
