"""Database module exports."""

from emogo_server.db.base import Base
from emogo_server.db.models import CloudRecord
from emogo_server.db.session import Database, get_db

__all__ = ["Base", "CloudRecord", "Database", "get_db"]
