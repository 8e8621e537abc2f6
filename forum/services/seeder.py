from __future__ import annotations
import random
from datetime import datetime, timedelta
from typing import Sequence
from faker import Faker
from sqlalchemy.orm import Session

from forum.config import RANDOM_SEED
from forum.db import ForumStore
from forum.models import User, Category, Topic, Post
from forum.services.forum import default_avatar_url, slugify

fake = Faker()


def seed_random_generators(seed: int = RANDOM_SEED) -> None:
    """Make faker/random output reproducible."""
    random.seed(seed)
    Faker.seed(seed)
    fake.seed_instance(seed)
    fake.unique.clear()


def _ts(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ")


# (id, username, name, joined_at, is_admin)
FIXTURE_USERS = [
    ("1", "react_guru", "Alice", "2023-01-15T10:00:00Z", True),
    ("2", "tailwind_fan", "Bob", "2023-02-20T11:30:00Z", False),
    ("3", "ts_master", "Charlie", "2023-03-05T14:00:00Z", False),
    ("4", "ux_designer", "Diana", "2023-04-10T18:45:00Z", False),
]

# (name, color, description)
FIXTURE_CATEGORIES = [
    ("React", "61DAFB", "Discussions about the React library."),
    ("Tailwind CSS", "38B2AC", "Styling with Tailwind CSS."),
    ("General", "F6E05E", "Off-topic and general chat."),
    ("TypeScript", "3178C6", "All about TypeScript."),
]

# (title, author_id, category index, view_count, [(author_id, created_at, likes, content), ...])
FIXTURE_TOPICS = [
    ("Getting Started with React Hooks", "1", 0, 152, [
        ("1", "2023-10-26T10:00:00Z", 12,
         "Hey everyone, I'm new to React Hooks. What are the best resources to get started? "
         "I've read the official docs, but looking for more practical examples.\n\n"
         "`useEffect` is a bit confusing!"),
        ("3", "2023-10-26T10:15:00Z", 8,
         "I highly recommend Kent C. Dodds' blog. He has some amazing deep dives into hooks."),
        ("2", "2023-10-26T11:00:00Z", 15,
         "For `useEffect`, the key is to understand the dependency array. An empty array `[]` "
         "means it runs only once on mount. If you pass variables, it re-runs when they change."),
        ("1", "2023-10-26T11:30:00Z", 2,
         "@ts_master Thanks for the tip! I'll check it out. @tailwind_fan That makes sense, "
         "I think I was missing that part."),
        ("4", "2023-10-27T12:30:00Z", 7,
         "Don't forget custom hooks! They are a superpower for reusing logic."),
    ]),
    ("Best Practices for Tailwind CSS in Large Projects", "2", 1, 230, [
        ("2", "2023-10-25T14:20:00Z", 25,
         "How do you organize your Tailwind classes in a large-scale application? Using `@apply` "
         "in CSS files? Or utility classes directly in the HTML?"),
        ("1", "2023-10-25T15:00:00Z", 10,
         "We stick to utility classes directly in JSX. It feels weird at first but becomes very "
         "productive. We use component libraries like Headless UI to encapsulate complex components."),
        ("4", "2023-10-25T16:00:00Z", 12,
         "I agree. We found `@apply` can lead to the same issues as custom CSS, where you have to "
         "jump between files. Keeping styles co-located with the markup is a big win."),
        ("3", "2023-10-26T09:15:00Z", 18,
         "There is a `prettier-plugin-tailwindcss` that automatically sorts your classes. "
         "It's a life-saver for keeping things clean!"),
    ]),
    ("Favorite TypeScript Utility Types?", "3", 3, 45, [
        ("3", "2023-10-27T11:00:00Z", 8,
         "What are some of your most-used utility types in TypeScript? I'm a big fan of `Pick` and `Omit`."),
    ]),
    ("Weekend Plans Discussion", "4", 2, 450, [
        ("4", "2023-10-24T18:00:00Z", 3, "It's almost the weekend! Anyone have exciting plans?"),
        ("1", "2023-10-25T09:00:00Z", 5, "Going for a hike on Saturday!"),
    ]),
    ("Custom Hooks for everything!", "1", 0, 25, [
        ("1", "2023-10-28T09:00:00Z", 15,
         "I've started abstracting almost all my component logic into custom hooks. "
         "It's making my components so much cleaner!"),
    ]),
]


def make_fixture_users(db: Session) -> list[User]:
    users = [
        User(id=uid, username=username, name=name, avatar_url=default_avatar_url(uid),
             joined_at=_ts(joined), is_admin=is_admin)
        for uid, username, name, joined, is_admin in FIXTURE_USERS
    ]
    db.add_all(users); db.flush()
    return users


def make_fixture_categories(db: Session) -> list[Category]:
    categories = [
        Category(name=name, slug=slugify(name), color=color, description=description)
        for name, color, description in FIXTURE_CATEGORIES
    ]
    db.add_all(categories); db.flush()
    return categories


def make_fixture_topics(db: Session, categories: Sequence[Category]) -> list[Topic]:
    topics: list[Topic] = []
    for title, author_id, cat_index, views, posts in FIXTURE_TOPICS:
        opened = _ts(posts[0][1])
        t = Topic(title=title, author_id=author_id, category_id=categories[cat_index].id,
                  created_at=opened, view_count=views)
        db.add(t); db.flush()
        for number, (post_author, created, likes, content) in enumerate(posts, 1):
            db.add(Post(
                topic_id=t.id, author_id=post_author, content=content, created_at=_ts(created),
                likes=likes, post_number=number, reply_to_post_number=None if number == 1 else 1,
            ))
        topics.append(t)
    db.flush()
    return topics


def make_users(db: Session, n_users: int) -> list[User]:
    users = []
    for _ in range(n_users):
        uid = str(fake.unique.random_int(min=100000, max=999999))
        users.append(User(
            id=uid, username=fake.unique.user_name(), name=fake.name(),
            avatar_url=default_avatar_url(uid),
            joined_at=fake.date_time_between(start_date="-2y", end_date="-60d"),
        ))
    db.add_all(users); db.flush()
    return users


def make_topics(db: Session, users: Sequence[User], categories: Sequence[Category],
                n_topics: int, max_replies: int = 8) -> list[Topic]:
    """
    Random topics, each opened by its author and followed by 0..max_replies
    replies spread over the following days.
    """
    topics: list[Topic] = []
    for _ in range(n_topics):
        author = random.choice(users)
        opened = fake.date_time_between(start_date="-60d", end_date="now")
        t = Topic(title=fake.sentence(nb_words=random.randint(4, 9)).rstrip("."),
                  author_id=author.id, category_id=random.choice(categories).id,
                  created_at=opened, view_count=random.randint(0, 500))
        db.add(t); db.flush()
        db.add(Post(topic_id=t.id, author_id=author.id, content=fake.paragraph(),
                    created_at=opened, likes=random.randint(0, 30), post_number=1))
        when = opened
        now = datetime.utcnow()
        for number in range(2, random.randint(0, max_replies) + 2):
            when = when + timedelta(minutes=random.randint(5, 2000))
            if when > now:
                break
            db.add(Post(topic_id=t.id, author_id=random.choice(users).id,
                        content=fake.sentence(nb_words=random.randint(6, 25)),
                        created_at=when, likes=random.randint(0, 20),
                        post_number=number, reply_to_post_number=1))
        topics.append(t)
    db.flush()
    return topics


def seed_forum(store: ForumStore, extra_users: int = 0, extra_topics: int = 0) -> bool:
    """
    Load the fixture data into an empty store, plus optional random bulk.

    Returns False (and leaves the store alone) if it already holds users.
    """
    if not store.is_empty():
        return False

    with store.session() as db:
        users = make_fixture_users(db)
        categories = make_fixture_categories(db)
        make_fixture_topics(db, categories)
        if extra_users:
            users += make_users(db, extra_users)
        if extra_topics:
            make_topics(db, users, categories, extra_topics)
    return True
