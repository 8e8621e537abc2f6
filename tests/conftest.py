"""Shared fixtures: a freshly seeded in-memory store per test."""

from datetime import datetime, timedelta

import pytest

from forum.db import ForumStore
from forum.services.forum import ForumService
from forum.services.seeder import seed_forum


class TickingClock:
    """Clock that moves forward one minute on every call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def store():
    """Create a seeded in-memory store."""
    store = ForumStore("sqlite://")
    seed_forum(store)
    yield store
    store.close()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def service(store, clock):
    """Service with no simulated latency."""
    return ForumService(store, latency=0, clock=clock)


async def _check_enrichment(service):
    for topic in await service.list_all_topics():
        posts = await service.list_posts_for_topic(topic.id)
        assert topic.reply_count == max(0, len(posts) - 1)
        expected_last = max((p.created_at for p in posts), default=topic.created_at)
        assert topic.last_posted_at == expected_last


@pytest.fixture
def check_enrichment():
    """Assert that every topic's derived fields match its stored posts."""
    return _check_enrichment
