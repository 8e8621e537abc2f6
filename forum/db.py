from contextlib import contextmanager

from sqlalchemy import create_engine, func
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from forum.config import DATABASE_URL
from forum.models import Base, Category, Post, Topic, User


def is_in_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class ForumStore:
    """
    Owner of the forum record set.

    Constructed once at process start and handed to whatever serves requests.
    The default URL keeps every table in a single in-memory SQLite connection,
    so the data lives exactly as long as the store.
    """

    def __init__(self, url: str = DATABASE_URL):
        self.url = url
        if is_in_memory(url):
            self.engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(url, pool_pre_ping=True)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Session:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def is_empty(self) -> bool:
        with self.session() as db:
            return db.query(func.count(User.id)).scalar() == 0

    def table_counts(self) -> dict:
        with self.session() as db:
            return {
                "users": db.query(func.count(User.id)).scalar(),
                "categories": db.query(func.count(Category.id)).scalar(),
                "topics": db.query(func.count(Topic.id)).scalar(),
                "posts": db.query(func.count(Post.id)).scalar(),
            }

    def reset(self) -> None:
        """Drop and recreate every table."""
        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        self.engine.dispose()
