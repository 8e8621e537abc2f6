"""
Client-side view state for the forum.

The current view is a tagged union with one frozen dataclass per page. The
controller applies navigation events synchronously and routes user actions
through the forum service. Every successful mutation is followed by a full
refresh of the current page; nothing is cached or updated optimistically.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from forum.errors import ForbiddenError, ForumError, ValidationError
from forum.services.forum import ADMIN_ACTIONS, ForumService
from forum.services.records import Category, Topic, User
from forum.services.summary import ActivitySummarizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HomeView:
    pass


@dataclass(frozen=True)
class CategoryView:
    category: Category


@dataclass(frozen=True)
class TopicView:
    topic_id: int


@dataclass(frozen=True)
class ProfileView:
    user_id: str


@dataclass(frozen=True)
class LoginView:
    pass


@dataclass(frozen=True)
class AdminView:
    pass


View = Union[HomeView, CategoryView, TopicView, ProfileView, LoginView, AdminView]


@dataclass(frozen=True)
class Page:
    """What the presentation layer should render for the current view."""
    name: str
    data: Dict[str, Any] = field(default_factory=dict)


class ViewController:
    """Navigation state machine plus the actions a forum user can take."""

    def __init__(self, service: ForumService, summarizer: Optional[ActivitySummarizer] = None):
        self.service = service
        self.summarizer = summarizer or ActivitySummarizer()

        self.state: View = HomeView()
        self.current_user: Optional[User] = None
        # One level of ancestry for back(): the category a topic was opened from
        self.last_category: Optional[Category] = None

        self.categories: List[Category] = []
        self.page: Page = Page("topic_list")
        self.summary: str = ""
        self.error: Optional[str] = None
        self.is_submitting = False

    # ------------------------------------------------------------------
    # Derived selection state

    @property
    def current_category(self) -> Optional[Category]:
        return self.state.category if isinstance(self.state, CategoryView) else None

    @property
    def current_topic_id(self) -> Optional[int]:
        return self.state.topic_id if isinstance(self.state, TopicView) else None

    @property
    def current_profile_id(self) -> Optional[str]:
        return self.state.user_id if isinstance(self.state, ProfileView) else None

    @property
    def is_admin(self) -> bool:
        return self.current_user is not None and self.current_user.is_admin

    # ------------------------------------------------------------------
    # Navigation

    def select_topic(self, topic: Topic) -> View:
        if isinstance(self.state, CategoryView):
            self.last_category = self.state.category
        elif not isinstance(self.state, TopicView):
            self.last_category = None
        self.state = TopicView(topic.id)
        return self.state

    def select_category(self, category: Optional[Category]) -> View:
        self.state = CategoryView(category) if category is not None else HomeView()
        return self.state

    def click_user(self, user_id: str) -> View:
        self.state = ProfileView(user_id)
        return self.state

    def click_login(self) -> View:
        self.state = LoginView()
        return self.state

    def click_home(self) -> View:
        self.last_category = None
        self.state = HomeView()
        return self.state

    def click_admin(self) -> View:
        self.state = AdminView()
        return self.state

    def back(self) -> View:
        if isinstance(self.state, TopicView) and self.last_category is not None:
            self.state = CategoryView(self.last_category)
        else:
            self.state = HomeView()
        self.last_category = None
        return self.state

    def logout(self) -> View:
        self.current_user = None
        self.state = HomeView()
        return self.state

    # ------------------------------------------------------------------
    # Page loading

    async def refresh(self) -> Page:
        """Refetch everything the current view shows and store the new page."""
        state = self.state
        categories = await self.service.list_categories()
        page = await self._load_page(state, categories)
        # Whichever refresh finishes last wins, even if the view moved on
        self.categories = categories
        self.page = page
        return page

    async def _load_page(self, state: View, categories: List[Category]) -> Page:
        if isinstance(state, HomeView):
            return Page("topic_list", {"category": None, "topics": await self.service.list_topics()})

        if isinstance(state, CategoryView):
            # the view holds a snapshot; show the category as it is stored now
            category = next((c for c in categories if c.id == state.category.id), state.category)
            topics = await self.service.list_topics(category.id)
            return Page("topic_list", {"category": category, "topics": topics})

        if isinstance(state, TopicView):
            topic = await self.service.get_topic(state.topic_id)
            if topic is None:
                return Page("topic_not_found", {"back": HomeView()})
            posts = await self.service.list_posts_for_topic(state.topic_id)
            return Page("topic", {"topic": topic, "posts": posts})

        if isinstance(state, ProfileView):
            user = await self.service.get_user(state.user_id)
            if user is None:
                return Page("profile_not_found", {"back": HomeView()})
            return Page("profile", {
                "user": user,
                "topics": await self.service.list_topics_by_user(state.user_id),
                "replies": await self.service.list_posts_by_user(state.user_id),
            })

        if isinstance(state, LoginView):
            return Page("login")

        if not self.is_admin:
            return Page("unauthorized")
        return Page("admin", {
            "overview": await self.service.get_overview(),
            "categories": categories,
            "users": await self.service.list_all_users(),
            "topics": await self.service.list_all_topics(),
            "posts": await self.service.list_all_posts(),
            "summary": self.summary,
        })

    # ------------------------------------------------------------------
    # Actions

    async def login(self, username: str) -> Optional[User]:
        if not username.strip():
            self._fail(ValidationError("Please enter a username."))
            return None
        try:
            user = await self.service.login(username)
        except ForumError as e:
            self._fail(e)
            return None
        self.error = None
        self.current_user = user
        self.state = HomeView()
        await self.refresh()
        return user

    async def create_topic(self, title: str, content: str, category_id: Optional[int]) -> Optional[Topic]:
        """Create a topic as the current user and open it."""
        if self.current_user is None:
            self._fail(ForbiddenError("You must be logged in to create a topic."))
            return None
        if not title.strip() or not content.strip() or not category_id:
            self._fail(ValidationError("Please fill out all fields."))
            return None

        self.error = None
        self.is_submitting = True
        try:
            topic = await self.service.create_topic(title, content, category_id, self.current_user)
        except ForumError as e:
            self._fail(e)
            return None
        finally:
            self.is_submitting = False

        self.state = TopicView(topic.id)
        self.last_category = None
        await self.refresh()
        return topic

    async def reply(self, content: str):
        """Post a reply to the topic being viewed."""
        if not isinstance(self.state, TopicView):
            self._fail(ValidationError("Open a topic before replying."))
            return None
        if self.current_user is None:
            self._fail(ForbiddenError("You must be logged in to reply."))
            return None
        if not content.strip():
            self._fail(ValidationError("Reply cannot be empty."))
            return None

        self.error = None
        self.is_submitting = True
        try:
            post = await self.service.create_post(self.state.topic_id, content, self.current_user)
        except ForumError as e:
            self._fail(e)
            return None
        finally:
            self.is_submitting = False

        await self.refresh()
        return post

    async def admin_action(self, action: str, *args, **kwargs):
        """
        Run one of the service's admin mutations as the current user.

        Only reachable while the admin page is open to an admin; the page is
        refreshed afterwards.
        """
        if action not in ADMIN_ACTIONS:
            raise ValueError(f"Unknown admin action: {action}")
        if not isinstance(self.state, AdminView) or not self.is_admin:
            self._fail(ForbiddenError("Admin access required"))
            return None

        self.error = None
        self.is_submitting = True
        try:
            result = await getattr(self.service, action)(*args, actor=self.current_user, **kwargs)
        except ForumError as e:
            self._fail(e)
            return None
        finally:
            self.is_submitting = False

        # the mutation may have changed the acting user (admin flag, deletion)
        self.current_user = await self.service.get_user(self.current_user.id)
        await self.refresh()
        return result

    async def generate_summary(self) -> Optional[str]:
        if not isinstance(self.state, AdminView) or not self.is_admin:
            self._fail(ForbiddenError("Admin access required"))
            return None

        self.error = None
        self.summary = ""
        self.is_submitting = True
        try:
            self.summary = await self.summarizer.summarize(
                await self.service.list_categories(),
                await self.service.list_all_topics(),
                await self.service.list_all_posts(),
            )
        except ForumError as e:
            self._fail(e)
            return None
        finally:
            self.is_submitting = False
        return self.summary

    def _fail(self, error: ForumError) -> None:
        logger.warning("Action failed: %s", error)
        self.error = error.message
