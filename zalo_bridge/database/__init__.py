"""Database module entry point."""
from zalo_bridge.database.core import DatabaseCore
from zalo_bridge.database.operations import DatabaseOperationsMixin, utc_now

# Combine Core Infrastructure and Business Operations
class Database(DatabaseCore, DatabaseOperationsMixin):
    pass

__all__ = ["Database", "utc_now"]
