from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, Text, ForeignKey, Boolean, Index
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

class User(Base):
    __tablename__ = "users"
    id = Column(String(32), primary_key=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(128), nullable=False)
    avatar_url = Column(String(255), nullable=False, default="")
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)

    topics = relationship("Topic", back_populates="author")
    posts = relationship("Post", back_populates="author")

class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    # hex without the leading '#'
    color = Column(String(6), nullable=False)

    topics = relationship("Topic", back_populates="category")

class Topic(Base):
    __tablename__ = "topics"
    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    author_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    view_count = Column(Integer, nullable=False, default=0)

    author = relationship("User", back_populates="topics")
    category = relationship("Category", back_populates="topics")
    posts = relationship(
        "Post", back_populates="topic", cascade="all, delete-orphan", order_by="Post.created_at"
    )

class Post(Base):
    __tablename__ = "posts"
    id = Column(Integer, primary_key=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    likes = Column(Integer, nullable=False, default=0)
    post_number = Column(Integer, nullable=False, default=1)
    reply_to_post_number = Column(Integer, nullable=True)

    topic = relationship("Topic", back_populates="posts")
    author = relationship("User", back_populates="posts")

Index("idx_posts_topic_created", Post.topic_id, Post.created_at)
Index("idx_posts_author_created", Post.author_id, Post.created_at)
