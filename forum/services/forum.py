# forum/services/forum.py
"""
Asynchronous data service for the forum.

Every public coroutine does its work against the store inside one session,
then waits out the simulated network latency before handing back frozen
snapshots. Reads never raise; mutations raise a ForumError subclass.
"""

import asyncio
import logging
import random
import re
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from forum import models
from forum.config import ENFORCE_ADMIN_AUTH, ROOT_ADMIN_ID, SIMULATED_LATENCY_MS
from forum.db import ForumStore
from forum.errors import ConflictError, ForbiddenError, ForumError, NotFoundError
from forum.services import records

logger = logging.getLogger(__name__)

T = TypeVar("T")


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def normalize_color(color: str) -> str:
    return color.strip().lstrip("#").upper()


def default_avatar_url(user_id: str) -> str:
    return f"https://i.pravatar.cc/150?u={user_id}"


def generate_user_id() -> str:
    return str(random.randint(100000, 999999))


def user_record(row: models.User) -> records.User:
    return records.User(
        id=row.id,
        username=row.username,
        name=row.name,
        avatar_url=row.avatar_url,
        joined_at=row.joined_at,
        is_admin=bool(row.is_admin),
    )


def category_record(row: models.Category) -> records.Category:
    return records.Category(
        id=row.id,
        name=row.name,
        slug=row.slug,
        description=row.description,
        color=row.color,
    )


def post_record(row: models.Post) -> records.Post:
    return records.Post(
        id=row.id,
        topic_id=row.topic_id,
        author=user_record(row.author),
        content=row.content,
        created_at=row.created_at,
        likes=row.likes,
        post_number=row.post_number,
        reply_to_post_number=row.reply_to_post_number,
    )


class ForumService:
    """Async query/mutation surface over a ForumStore."""

    def __init__(
        self,
        store: ForumStore,
        latency: Optional[float] = None,
        root_admin_id: str = ROOT_ADMIN_ID,
        enforce_admin: bool = ENFORCE_ADMIN_AUTH,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Args:
            store: Store owning the record set
            latency: Simulated latency in seconds (defaults to SIMULATED_LATENCY_MS)
            root_admin_id: User id whose admin flag can never be toggled
            enforce_admin: Re-check the acting user's admin flag on admin calls
            clock: Source of timestamps for new records
        """
        self.store = store
        self.latency = SIMULATED_LATENCY_MS / 1000 if latency is None else latency
        self.root_admin_id = root_admin_id
        self.enforce_admin = enforce_admin
        self.clock = clock

    async def _run(self, operation: Callable[..., T], *args, **kwargs) -> T:
        try:
            with self.store.session() as db:
                result = operation(db, *args, **kwargs)
        except ForumError as exc:
            logger.info("%s rejected: %s", operation.__name__.lstrip("_"), exc)
            await asyncio.sleep(self.latency)
            raise
        await asyncio.sleep(self.latency)
        return result

    # ------------------------------------------------------------------
    # Enrichment

    def _post_stats(self, db: Session, topic_ids: Iterable[int]) -> Dict[int, Tuple[int, datetime]]:
        stats: Dict[int, Tuple[int, datetime]] = {}
        rows = (
            db.query(models.Post.topic_id, models.Post.created_at)
            .filter(models.Post.topic_id.in_(list(topic_ids)))
            .all()
        )
        for topic_id, created_at in rows:
            count, last = stats.get(topic_id, (0, created_at))
            stats[topic_id] = (count + 1, max(last, created_at))
        return stats

    def _enrich(self, db: Session, rows: List[models.Topic]) -> List[records.Topic]:
        stats = self._post_stats(db, [row.id for row in rows])
        topics = []
        for row in rows:
            count, last_posted_at = stats.get(row.id, (0, row.created_at))
            topics.append(records.Topic(
                id=row.id,
                title=row.title,
                author=user_record(row.author),
                category=category_record(row.category),
                created_at=row.created_at,
                last_posted_at=last_posted_at,
                reply_count=max(0, count - 1),
                view_count=row.view_count,
            ))
        topics.sort(key=lambda t: t.last_posted_at, reverse=True)
        return topics

    def _authorize(self, db: Session, actor: Optional[records.User]) -> None:
        if not self.enforce_admin:
            return
        row = db.get(models.User, actor.id) if actor is not None else None
        if row is None or not row.is_admin:
            raise ForbiddenError("Admin access required")

    # ------------------------------------------------------------------
    # Reads

    async def list_categories(self) -> List[records.Category]:
        return await self._run(self._list_categories)

    def _list_categories(self, db: Session) -> List[records.Category]:
        rows = db.query(models.Category).order_by(models.Category.id).all()
        return [category_record(row) for row in rows]

    async def list_topics(self, category_id: Optional[int] = None) -> List[records.Topic]:
        """Topics sorted by most recent activity, optionally for one category."""
        return await self._run(self._list_topics, category_id)

    def _list_topics(self, db: Session, category_id: Optional[int]) -> List[records.Topic]:
        query = db.query(models.Topic)
        if category_id is not None:
            query = query.filter(models.Topic.category_id == category_id)
        return self._enrich(db, query.all())

    async def get_topic(self, topic_id: int) -> Optional[records.Topic]:
        return await self._run(self._get_topic, topic_id)

    def _get_topic(self, db: Session, topic_id: int) -> Optional[records.Topic]:
        row = db.get(models.Topic, topic_id)
        return self._enrich(db, [row])[0] if row is not None else None

    async def list_posts_for_topic(self, topic_id: int) -> List[records.Post]:
        """Posts of one topic, oldest first."""
        return await self._run(self._list_posts_for_topic, topic_id)

    def _list_posts_for_topic(self, db: Session, topic_id: int) -> List[records.Post]:
        rows = (
            db.query(models.Post)
            .filter(models.Post.topic_id == topic_id)
            .order_by(models.Post.created_at, models.Post.id)
            .all()
        )
        return [post_record(row) for row in rows]

    async def get_user(self, user_id: str) -> Optional[records.User]:
        return await self._run(self._get_user, user_id)

    def _get_user(self, db: Session, user_id: str) -> Optional[records.User]:
        row = db.get(models.User, user_id)
        return user_record(row) if row is not None else None

    async def list_topics_by_user(self, user_id: str) -> List[records.Topic]:
        return await self._run(self._list_topics_by_user, user_id)

    def _list_topics_by_user(self, db: Session, user_id: str) -> List[records.Topic]:
        rows = db.query(models.Topic).filter(models.Topic.author_id == user_id).all()
        return self._enrich(db, rows)

    async def list_posts_by_user(self, user_id: str) -> List[records.UserReply]:
        """
        Replies written by a user, newest first.

        Posts inside topics the same user started are left out, so the list
        never repeats what the user's topic list already shows.
        """
        return await self._run(self._list_posts_by_user, user_id)

    def _list_posts_by_user(self, db: Session, user_id: str) -> List[records.UserReply]:
        rows = (
            db.query(models.Post, models.Topic)
            .join(models.Topic, models.Post.topic_id == models.Topic.id)
            .filter(models.Post.author_id == user_id, models.Topic.author_id != user_id)
            .order_by(models.Post.created_at.desc(), models.Post.id.desc())
            .all()
        )
        return [
            records.UserReply(post=post_record(post), topic_id=topic.id, topic_title=topic.title)
            for post, topic in rows
        ]

    async def list_all_users(self) -> List[records.User]:
        return await self._run(self._list_all_users)

    def _list_all_users(self, db: Session) -> List[records.User]:
        rows = db.query(models.User).order_by(models.User.joined_at, models.User.id).all()
        return [user_record(row) for row in rows]

    async def list_all_topics(self) -> List[records.Topic]:
        return await self._run(self._list_topics, None)

    async def list_all_posts(self) -> List[records.Post]:
        """Every post in the forum, newest first."""
        return await self._run(self._list_all_posts)

    def _list_all_posts(self, db: Session) -> List[records.Post]:
        rows = db.query(models.Post).order_by(models.Post.created_at.desc(), models.Post.id.desc()).all()
        return [post_record(row) for row in rows]

    async def get_overview(self) -> records.ForumOverview:
        return await self._run(self._get_overview)

    def _get_overview(self, db: Session) -> records.ForumOverview:
        return records.ForumOverview(
            category_count=db.query(func.count(models.Category.id)).scalar(),
            topic_count=db.query(func.count(models.Topic.id)).scalar(),
            post_count=db.query(func.count(models.Post.id)).scalar(),
            user_count=db.query(func.count(models.User.id)).scalar(),
        )

    # ------------------------------------------------------------------
    # Mutations

    async def login(self, username: str) -> records.User:
        """Look up a user by username, ignoring case."""
        return await self._run(self._login, username)

    def _login(self, db: Session, username: str) -> records.User:
        row = (
            db.query(models.User)
            .filter(func.lower(models.User.username) == username.strip().lower())
            .first()
        )
        if row is None:
            raise NotFoundError("User not found")
        logger.info("User %s logged in", row.username)
        return user_record(row)

    async def create_post(
        self, topic_id: int, content: str, author: Optional[records.User]
    ) -> records.Post:
        """Append a reply to a topic; the topic's last activity moves with it."""
        author_id = author.id if author is not None else None
        return await self._run(self._create_post, topic_id, content, author_id)

    def _create_post(
        self, db: Session, topic_id: int, content: str, author_id: Optional[str]
    ) -> records.Post:
        topic = db.get(models.Topic, topic_id)
        if topic is None:
            raise NotFoundError(f"Topic {topic_id} not found")
        self._require_user(db, author_id)

        last_number = (
            db.query(func.max(models.Post.post_number))
            .filter(models.Post.topic_id == topic_id)
            .scalar()
        ) or 0
        post = models.Post(
            topic_id=topic_id,
            author_id=author_id,
            content=content,
            created_at=self.clock(),
            likes=0,
            post_number=last_number + 1,
            reply_to_post_number=1 if last_number else None,
        )
        db.add(post)
        db.flush()
        logger.info("Post %s added to topic %s by %s", post.id, topic_id, author_id)
        return post_record(post)

    async def create_topic(
        self, title: str, content: str, category_id: int, author: Optional[records.User]
    ) -> records.Topic:
        """Create a topic together with its opening post in one transaction."""
        author_id = author.id if author is not None else None
        return await self._run(self._create_topic, title, content, category_id, author_id)

    def _create_topic(
        self, db: Session, title: str, content: str, category_id: int, author_id: Optional[str]
    ) -> records.Topic:
        self._require_user(db, author_id)
        if db.get(models.Category, category_id) is None:
            raise NotFoundError(f"Category {category_id} not found")

        now = self.clock()
        topic = models.Topic(
            title=title, author_id=author_id, category_id=category_id, created_at=now, view_count=0
        )
        db.add(topic)
        db.flush()
        db.add(models.Post(
            topic_id=topic.id,
            author_id=author_id,
            content=content,
            created_at=now,
            likes=0,
            post_number=1,
            reply_to_post_number=None,
        ))
        db.flush()
        logger.info("Topic %s created in category %s by %s", topic.id, category_id, author_id)
        return self._enrich(db, [topic])[0]

    def _require_user(self, db: Session, user_id: Optional[str]) -> models.User:
        row = db.get(models.User, user_id) if user_id is not None else None
        if row is None:
            raise NotFoundError(f"User {user_id} not found")
        return row

    # ------------------------------------------------------------------
    # Admin mutations
    #
    # The acting user is only checked when enforce_admin is set; otherwise
    # the caller is trusted to have gated access.

    async def create_category(
        self, name: str, description: str, color: str, *, actor: Optional[records.User] = None
    ) -> records.Category:
        return await self._run(self._create_category, name, description, color, actor)

    def _create_category(self, db, name, description, color, actor) -> records.Category:
        self._authorize(db, actor)
        row = models.Category(
            name=name, slug=slugify(name), description=description, color=normalize_color(color)
        )
        db.add(row)
        db.flush()
        logger.info("Category %s (%s) created", row.id, row.name)
        return category_record(row)

    async def edit_category(
        self,
        category_id: int,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        actor: Optional[records.User] = None,
    ) -> records.Category:
        return await self._run(self._edit_category, category_id, name, description, color, actor)

    def _edit_category(self, db, category_id, name, description, color, actor) -> records.Category:
        self._authorize(db, actor)
        row = db.get(models.Category, category_id)
        if row is None:
            raise NotFoundError(f"Category {category_id} not found")
        if name is not None:
            row.name = name
            row.slug = slugify(name)
        if description is not None:
            row.description = description
        if color is not None:
            row.color = normalize_color(color)
        db.flush()
        return category_record(row)

    async def delete_category(self, category_id: int, *, actor: Optional[records.User] = None) -> None:
        """Delete a category that no topic references any more."""
        return await self._run(self._delete_category, category_id, actor)

    def _delete_category(self, db, category_id, actor) -> None:
        self._authorize(db, actor)
        row = db.get(models.Category, category_id)
        if row is None:
            raise NotFoundError(f"Category {category_id} not found")
        in_use = db.query(func.count(models.Topic.id)).filter(models.Topic.category_id == category_id).scalar()
        if in_use:
            raise ConflictError(
                f"Cannot delete category '{row.name}': {in_use} topic(s) still reference it"
            )
        db.delete(row)
        logger.info("Category %s deleted", category_id)

    async def admin_create_topic(
        self,
        title: str,
        content: str,
        category_id: int,
        author_id: str,
        *,
        actor: Optional[records.User] = None,
    ) -> records.Topic:
        return await self._run(self._admin_create_topic, title, content, category_id, author_id, actor)

    def _admin_create_topic(self, db, title, content, category_id, author_id, actor) -> records.Topic:
        self._authorize(db, actor)
        return self._create_topic(db, title, content, category_id, author_id)

    async def delete_topic(self, topic_id: int, *, actor: Optional[records.User] = None) -> None:
        """Delete a topic and every post in it."""
        return await self._run(self._delete_topic, topic_id, actor)

    def _delete_topic(self, db, topic_id, actor) -> None:
        self._authorize(db, actor)
        row = db.get(models.Topic, topic_id)
        if row is None:
            raise NotFoundError(f"Topic {topic_id} not found")
        db.delete(row)
        logger.info("Topic %s deleted with its posts", topic_id)

    async def create_user(
        self,
        username: str,
        name: str,
        avatar_url: Optional[str] = None,
        is_admin: bool = False,
        *,
        actor: Optional[records.User] = None,
    ) -> records.User:
        return await self._run(self._create_user, username, name, avatar_url, is_admin, actor)

    def _create_user(self, db, username, name, avatar_url, is_admin, actor) -> records.User:
        self._authorize(db, actor)
        taken = (
            db.query(models.User.id)
            .filter(func.lower(models.User.username) == username.strip().lower())
            .first()
        )
        if taken is not None:
            raise ConflictError(f"Username '{username}' is already taken")

        user_id = generate_user_id()
        while db.get(models.User, user_id) is not None:
            user_id = generate_user_id()
        row = models.User(
            id=user_id,
            username=username.strip(),
            name=name,
            avatar_url=avatar_url or default_avatar_url(user_id),
            joined_at=self.clock(),
            is_admin=is_admin,
        )
        db.add(row)
        db.flush()
        logger.info("User %s (%s) created", row.id, row.username)
        return user_record(row)

    async def delete_user(self, user_id: str, *, actor: Optional[records.User] = None) -> None:
        """
        Delete a non-admin user.

        Topics the user started go with them (posts included), as do their
        replies in other topics.
        """
        return await self._run(self._delete_user, user_id, actor)

    def _delete_user(self, db, user_id, actor) -> None:
        self._authorize(db, actor)
        row = db.get(models.User, user_id)
        if row is None:
            raise NotFoundError(f"User {user_id} not found")
        if row.is_admin:
            raise ForbiddenError("Cannot delete an admin user")

        topic_ids = [tid for (tid,) in db.query(models.Topic.id).filter(models.Topic.author_id == user_id)]
        db.query(models.Post).filter(
            or_(models.Post.author_id == user_id, models.Post.topic_id.in_(topic_ids))
        ).delete(synchronize_session=False)
        db.query(models.Topic).filter(models.Topic.author_id == user_id).delete(synchronize_session=False)
        db.query(models.User).filter(models.User.id == user_id).delete(synchronize_session=False)
        logger.info("User %s deleted along with %d topic(s)", user_id, len(topic_ids))

    async def toggle_admin_status(
        self, user_id: str, *, actor: Optional[records.User] = None
    ) -> records.User:
        """Flip a user's admin flag; the root admin is protected."""
        return await self._run(self._toggle_admin_status, user_id, actor)

    def _toggle_admin_status(self, db, user_id, actor) -> records.User:
        if user_id == self.root_admin_id:
            raise ForbiddenError("Cannot change the root admin's status")
        self._authorize(db, actor)
        row = db.get(models.User, user_id)
        if row is None:
            raise NotFoundError(f"User {user_id} not found")
        row.is_admin = not row.is_admin
        db.flush()
        logger.info("User %s admin status set to %s", user_id, row.is_admin)
        return user_record(row)


ADMIN_ACTIONS = frozenset({
    "create_category",
    "edit_category",
    "delete_category",
    "admin_create_topic",
    "delete_topic",
    "create_user",
    "delete_user",
    "toggle_admin_status",
})
