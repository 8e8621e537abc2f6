from typing import Optional

from fastapi import Header, Request

from forum.services.forum import ForumService
from forum.services.records import User
from forum.services.summary import ActivitySummarizer


def get_service(request: Request) -> ForumService:
    return request.app.state.service


def get_summarizer(request: Request) -> ActivitySummarizer:
    return request.app.state.summarizer


async def get_actor(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Id of the acting user"),
) -> Optional[User]:
    """Resolve the acting user from the X-User-Id header, if any."""
    if not x_user_id:
        return None
    return await get_service(request).get_user(x_user_id)
