"""
FastAPI routes mirroring the forum service's read and write calls.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from forum.routes.deps import get_service
from forum.services.forum import ForumService
from forum.services.records import Category, Post, Topic, User, UserReply


# Request models
class LoginRequest(BaseModel):
    """Request body for the mock login."""
    username: str = Field(..., min_length=1, description="Username (case-insensitive)")


class PostCreate(BaseModel):
    """Request body for a reply."""
    content: str = Field(..., min_length=1, description="Markdown content")
    author_id: str = Field(..., description="Id of the author")


class TopicCreate(BaseModel):
    """Request body for a new topic with its opening post."""
    title: str = Field(..., min_length=1, description="Topic title")
    content: str = Field(..., min_length=1, description="Content of the opening post")
    category_id: int = Field(..., ge=1, description="Category the topic belongs to")
    author_id: str = Field(..., description="Id of the author")


router = APIRouter(tags=["forum"])


@router.post("/login", response_model=User)
async def login(body: LoginRequest, service: ForumService = Depends(get_service)) -> User:
    return await service.login(body.username)


@router.get("/categories", response_model=List[Category])
async def list_categories(service: ForumService = Depends(get_service)) -> List[Category]:
    return await service.list_categories()


@router.get("/topics", response_model=List[Topic])
async def list_topics(
    category_id: Optional[int] = Query(None, ge=1, description="Only topics in this category"),
    service: ForumService = Depends(get_service),
) -> List[Topic]:
    """
    List topics by most recent activity.

    Each topic carries its derived reply count and last activity time.
    """
    return await service.list_topics(category_id)


@router.post("/topics", response_model=Topic, status_code=201)
async def create_topic(body: TopicCreate, service: ForumService = Depends(get_service)) -> Topic:
    author = await service.get_user(body.author_id)
    return await service.create_topic(body.title, body.content, body.category_id, author)


@router.get("/topics/{topic_id}", response_model=Topic)
async def get_topic(topic_id: int, service: ForumService = Depends(get_service)) -> Topic:
    topic = await service.get_topic(topic_id)
    if topic is None:
        raise HTTPException(status_code=404, detail=f"Topic {topic_id} not found")
    return topic


@router.get("/topics/{topic_id}/posts", response_model=List[Post])
async def list_posts(topic_id: int, service: ForumService = Depends(get_service)) -> List[Post]:
    return await service.list_posts_for_topic(topic_id)


@router.post("/topics/{topic_id}/posts", response_model=Post, status_code=201)
async def create_post(
    topic_id: int, body: PostCreate, service: ForumService = Depends(get_service)
) -> Post:
    author = await service.get_user(body.author_id)
    return await service.create_post(topic_id, body.content, author)


@router.get("/users/{user_id}", response_model=User)
async def get_user(user_id: str, service: ForumService = Depends(get_service)) -> User:
    user = await service.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return user


@router.get("/users/{user_id}/topics", response_model=List[Topic])
async def list_user_topics(user_id: str, service: ForumService = Depends(get_service)) -> List[Topic]:
    return await service.list_topics_by_user(user_id)


@router.get("/users/{user_id}/replies", response_model=List[UserReply])
async def list_user_replies(user_id: str, service: ForumService = Depends(get_service)) -> List[UserReply]:
    return await service.list_posts_by_user(user_id)
