from harvester.models.content import (
    CommentItem,
    FeedSnapshot,
    PostItem,
    ScrapeRequest,
    ScrapeResult,
    StoredPost,
)
from harvester.models.cookies import CookieEntry, SessionCredential
from harvester.models.session import LoginCredentials, SessionOutcome, SessionStatus

__all__ = [
    "CommentItem",
    "CookieEntry",
    "FeedSnapshot",
    "LoginCredentials",
    "PostItem",
    "ScrapeRequest",
    "ScrapeResult",
    "SessionCredential",
    "SessionOutcome",
    "SessionStatus",
    "StoredPost",
]
