"""
Read-only snapshots handed out by the forum service.

Every call builds fresh frozen instances from the store, so callers can keep
them around without ever reaching back into the store's rows.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    id: str
    username: str
    name: str
    avatar_url: str
    joined_at: datetime
    is_admin: bool = False


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    slug: str
    description: str
    color: str


@dataclass(frozen=True)
class Topic:
    """A topic enriched with the fields derived from its posts."""
    id: int
    title: str
    author: User
    category: Category
    created_at: datetime
    last_posted_at: datetime
    reply_count: int
    view_count: int

    @property
    def author_id(self) -> str:
        return self.author.id

    @property
    def category_id(self) -> int:
        return self.category.id


@dataclass(frozen=True)
class Post:
    id: int
    topic_id: int
    author: User
    content: str
    created_at: datetime
    likes: int
    post_number: int
    reply_to_post_number: Optional[int] = None

    @property
    def author_id(self) -> str:
        return self.author.id


@dataclass(frozen=True)
class UserReply:
    """A post returned from a by-user query, together with its topic."""
    post: Post
    topic_id: int
    topic_title: str


@dataclass(frozen=True)
class ForumOverview:
    category_count: int
    topic_count: int
    post_count: int
    user_count: int
