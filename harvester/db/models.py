"""SQLite tables for scraped posts and their comments.

Identity conventions:
- url: canonical permalink, unique when present
- content_hash: sha256 fingerprint of author/text/timestamp, unique

Time field conventions:
- timestamp: when the post/comment was written (from the page, UTC)
- created_at: when we first stored the record (immutable)
- updated_at: last modification time (auto-updated)
"""

import json
from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class PostRow(Base):
    """A post from a group feed."""

    __tablename__ = "group_posts"

    id = Column(Integer, primary_key=True)
    text = Column(Text, nullable=False, default="")
    author_name = Column(String(256))
    author_url = Column(Text)
    url = Column(Text)
    content_hash = Column(String(64), nullable=False)
    timestamp = Column(DateTime)

    likes_count = Column(Integer, default=0)
    comments_count = Column(Integer, default=0)
    shares_count = Column(Integer, default=0)

    # Image URLs (JSON array)
    images = Column(Text)

    # Marketplace listings only
    title = Column(String(256))
    price = Column(String(64))
    location = Column(String(256))

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    comments = relationship(
        "CommentRow",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CommentRow.id",
    )

    __table_args__ = (
        Index("idx_post_url", "url", unique=True),
        Index("idx_content_hash", "content_hash", unique=True),
    )

    def get_images(self) -> list[str]:
        if not self.images:
            return []
        return json.loads(self.images)

    def set_images(self, urls: list[str]):
        self.images = json.dumps(urls) if urls else None


class CommentRow(Base):
    """Comment on a post. Never stored without its post."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("group_posts.id", ondelete="CASCADE"), nullable=False, index=True)

    author_name = Column(String(256))
    author_url = Column(Text)
    text = Column(Text, nullable=False)
    likes_count = Column(Integer, default=0)
    timestamp = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    post = relationship("PostRow", back_populates="comments")
