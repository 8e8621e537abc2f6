"""
Admin console routes: overview aggregates, CRUD and the activity summary.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from forum.routes.deps import get_actor, get_service, get_summarizer
from forum.services.forum import ForumService
from forum.services.records import Category, ForumOverview, Post, Topic, User
from forum.services.summary import ActivitySummarizer


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Category name")
    description: str = Field("", description="Short description")
    color: str = Field(..., min_length=3, max_length=7, description="Hex colour, '#' optional")


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    color: Optional[str] = Field(None, min_length=3, max_length=7)


class AdminTopicCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category_id: int = Field(..., ge=1)
    author_id: str = Field(..., description="Author the topic is created for")


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    avatar_url: Optional[str] = None
    is_admin: bool = False


class SummaryResponse(BaseModel):
    """Response model for the AI activity summary."""
    summary: str = Field(..., description="Generated free text")


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/overview", response_model=ForumOverview)
async def overview(service: ForumService = Depends(get_service)) -> ForumOverview:
    return await service.get_overview()


@router.get("/users", response_model=List[User])
async def list_users(service: ForumService = Depends(get_service)) -> List[User]:
    return await service.list_all_users()


@router.get("/topics", response_model=List[Topic])
async def list_topics(service: ForumService = Depends(get_service)) -> List[Topic]:
    return await service.list_all_topics()


@router.get("/posts", response_model=List[Post])
async def list_posts(service: ForumService = Depends(get_service)) -> List[Post]:
    return await service.list_all_posts()


@router.post("/categories", response_model=Category, status_code=201)
async def create_category(
    body: CategoryCreate,
    service: ForumService = Depends(get_service),
    actor: Optional[User] = Depends(get_actor),
) -> Category:
    return await service.create_category(body.name, body.description, body.color, actor=actor)


@router.put("/categories/{category_id}", response_model=Category)
async def edit_category(
    category_id: int,
    body: CategoryUpdate,
    service: ForumService = Depends(get_service),
    actor: Optional[User] = Depends(get_actor),
) -> Category:
    return await service.edit_category(
        category_id, name=body.name, description=body.description, color=body.color, actor=actor
    )


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: int,
    service: ForumService = Depends(get_service),
    actor: Optional[User] = Depends(get_actor),
) -> None:
    """Delete a category; 409 while any topic still uses it."""
    await service.delete_category(category_id, actor=actor)


@router.post("/topics", response_model=Topic, status_code=201)
async def create_topic(
    body: AdminTopicCreate,
    service: ForumService = Depends(get_service),
    actor: Optional[User] = Depends(get_actor),
) -> Topic:
    return await service.admin_create_topic(
        body.title, body.content, body.category_id, body.author_id, actor=actor
    )


@router.delete("/topics/{topic_id}", status_code=204)
async def delete_topic(
    topic_id: int,
    service: ForumService = Depends(get_service),
    actor: Optional[User] = Depends(get_actor),
) -> None:
    await service.delete_topic(topic_id, actor=actor)


@router.post("/users", response_model=User, status_code=201)
async def create_user(
    body: UserCreate,
    service: ForumService = Depends(get_service),
    actor: Optional[User] = Depends(get_actor),
) -> User:
    return await service.create_user(
        body.username, body.name, body.avatar_url, body.is_admin, actor=actor
    )


@router.delete("/users/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    service: ForumService = Depends(get_service),
    actor: Optional[User] = Depends(get_actor),
) -> None:
    """Delete a user; admins cannot be deleted (403)."""
    await service.delete_user(user_id, actor=actor)


@router.post("/users/{user_id}/toggle-admin", response_model=User)
async def toggle_admin(
    user_id: str,
    service: ForumService = Depends(get_service),
    actor: Optional[User] = Depends(get_actor),
) -> User:
    return await service.toggle_admin_status(user_id, actor=actor)


@router.post("/summary", response_model=SummaryResponse)
async def generate_summary(
    service: ForumService = Depends(get_service),
    summarizer: ActivitySummarizer = Depends(get_summarizer),
) -> SummaryResponse:
    """
    Generate the AI activity summary.

    Returns 503 when no API key is configured and 502 when the model call fails.
    """
    text = await summarizer.summarize(
        await service.list_categories(),
        await service.list_all_topics(),
        await service.list_all_posts(),
    )
    return SummaryResponse(summary=text)
