"""
Tests for admin mutations: integrity guards, protected users and cascades.
"""
import pytest

from forum.errors import ConflictError, ForbiddenError, NotFoundError
from forum.services.forum import ForumService


pytestmark = pytest.mark.asyncio


class TestCategories:

    async def test_create_category(self, service):
        category = await service.create_category("Python Land", "Snakes.", "#3776ab")

        assert category.slug == "python-land"
        assert category.color == "3776AB"
        assert category in await service.list_categories()

    async def test_edit_category(self, service):
        category = await service.edit_category(3, name="Off Topic", color="#000000")

        assert category.name == "Off Topic"
        assert category.slug == "off-topic"
        assert category.color == "000000"
        assert category.description == "Off-topic and general chat."
        assert (await service.get_topic(4)).category.name == "Off Topic"

    async def test_edit_missing_category(self, service):
        with pytest.raises(NotFoundError):
            await service.edit_category(999, name="x")

    async def test_delete_category_in_use(self, service):
        with pytest.raises(ConflictError):
            await service.delete_category(1)

        assert len(await service.list_categories()) == 4

    async def test_delete_unused_category(self, service):
        category = await service.create_category("Empty", "", "FFFFFF")

        await service.delete_category(category.id)

        assert category.id not in [c.id for c in await service.list_categories()]

    async def test_conflict_tracks_topic_references(self, service):
        # TypeScript holds a single topic; it becomes deletable once that topic goes
        with pytest.raises(ConflictError):
            await service.delete_category(4)

        await service.delete_topic(3)
        await service.delete_category(4)

        assert [c.id for c in await service.list_categories()] == [1, 2, 3]


class TestTopics:

    async def test_admin_create_topic_for_author(self, service):
        topic = await service.admin_create_topic("Announcements", "Welcome!", 3, "4")

        assert topic.author.username == "ux_designer"
        assert len(await service.list_posts_for_topic(topic.id)) == 1

    async def test_admin_create_topic_unknown_author(self, service):
        with pytest.raises(NotFoundError):
            await service.admin_create_topic("Announcements", "Welcome!", 3, "nobody")

    async def test_delete_topic_cascades_posts(self, service):
        await service.delete_topic(1)

        assert await service.get_topic(1) is None
        assert await service.list_posts_for_topic(1) == []
        assert len(await service.list_all_posts()) == 8

    async def test_delete_missing_topic(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_topic(999)

    async def test_reply_counts_after_mixed_mutations(self, service, check_enrichment):
        alice = await service.get_user("1")
        bob = await service.get_user("2")
        topic = await service.create_topic("Mixed", "first", 2, alice)
        await service.create_post(topic.id, "a", bob)
        await service.create_post(2, "b", alice)
        await service.delete_topic(4)
        await service.create_post(topic.id, "c", alice)

        await check_enrichment(service)
        assert (await service.get_topic(topic.id)).reply_count == 2


class TestUsers:

    async def test_create_user(self, service):
        user = await service.create_user("new_person", "Eve")

        assert user.is_admin is False
        assert len(user.id) == 6
        assert user.avatar_url.endswith(user.id)
        assert (await service.login("NEW_PERSON")).id == user.id

    async def test_duplicate_username(self, service):
        with pytest.raises(ConflictError):
            await service.create_user("TS_Master", "Someone else")

    async def test_delete_admin_forbidden(self, service):
        with pytest.raises(ForbiddenError):
            await service.delete_user("1")

        assert await service.get_user("1") is not None

    async def test_delete_user_removes_their_content(self, service, check_enrichment):
        await service.delete_user("2")

        assert await service.get_user("2") is None
        assert await service.get_topic(2) is None
        # Bob's reply in topic 1 is gone too
        assert (await service.get_topic(1)).reply_count == 3
        for topic in await service.list_all_topics():
            assert await service.get_user(topic.author_id) is not None
        for post in await service.list_all_posts():
            assert post.author_id != "2"
        await check_enrichment(service)

    async def test_delete_missing_user(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_user("nobody")

    async def test_delete_user_after_promotion_is_forbidden(self, service):
        await service.toggle_admin_status("3")

        with pytest.raises(ForbiddenError):
            await service.delete_user("3")


class TestToggleAdmin:

    async def test_root_admin_is_protected(self, service):
        with pytest.raises(ForbiddenError):
            await service.toggle_admin_status("1")

        assert (await service.get_user("1")).is_admin is True

    async def test_root_admin_protected_even_if_missing(self, store):
        service = ForumService(store, latency=0, root_admin_id="ghost")

        with pytest.raises(ForbiddenError):
            await service.toggle_admin_status("ghost")

    async def test_double_toggle_restores(self, service):
        first = await service.toggle_admin_status("2")
        second = await service.toggle_admin_status("2")

        assert first.is_admin is True
        assert second.is_admin is False

    async def test_toggle_missing_user(self, service):
        with pytest.raises(NotFoundError):
            await service.toggle_admin_status("nobody")


class TestEnforcedAuthorization:
    """Opt-in re-check of the acting user's admin flag."""

    @pytest.fixture
    def strict_service(self, store):
        return ForumService(store, latency=0, enforce_admin=True)

    async def test_trusting_service_ignores_actor(self, service):
        bob = await service.get_user("2")

        category = await service.create_category("Open", "", "123456", actor=bob)

        assert category.name == "Open"

    async def test_missing_actor_rejected(self, strict_service):
        with pytest.raises(ForbiddenError):
            await strict_service.create_category("Nope", "", "123456")

    async def test_non_admin_actor_rejected(self, strict_service):
        bob = await strict_service.get_user("2")

        with pytest.raises(ForbiddenError):
            await strict_service.delete_topic(1, actor=bob)

        assert await strict_service.get_topic(1) is not None

    async def test_admin_actor_allowed(self, strict_service):
        alice = await strict_service.get_user("1")

        await strict_service.delete_topic(1, actor=alice)

        assert await strict_service.get_topic(1) is None

    async def test_stale_actor_record_is_rechecked(self, strict_service):
        alice = await strict_service.get_user("1")
        charlie = await strict_service.toggle_admin_status("3", actor=alice)
        await strict_service.toggle_admin_status("3", actor=alice)

        # charlie's snapshot still says admin, the store no longer does
        assert charlie.is_admin is True
        with pytest.raises(ForbiddenError):
            await strict_service.delete_topic(2, actor=charlie)
