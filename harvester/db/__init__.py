from harvester.db.database import Database
from harvester.db.models import Base, CommentRow, PostRow
from harvester.db.store import RecordStore, SqlRecordStore

__all__ = [
    "Base",
    "CommentRow",
    "Database",
    "PostRow",
    "RecordStore",
    "SqlRecordStore",
]
