# forum/cli.py
import asyncio
from typing import Optional

import typer

from forum.config import DATABASE_URL, SIMULATED_LATENCY_MS
from forum.db import ForumStore, is_in_memory
from forum.errors import ForumError
from forum.logging_config import configure_logging
from forum.services import seeder
from forum.services.forum import ForumService
from forum.services.markdown import CODE, render_content
from forum.services.summary import ActivitySummarizer

app = typer.Typer(help="Forum CLI with subcommands")


def _service(latency_ms: int) -> ForumService:
    store = ForumStore()
    seeder.seed_forum(store)
    return ForumService(store, latency=latency_ms / 1000)


LATENCY_OPTION = typer.Option(0, "--latency", help="Simulated latency per call in ms")


@app.callback()
def main(log_level: str = typer.Option("WARNING", "--log-level", help="Logging level")):
    configure_logging(log_level)


@app.command("seed")
def seed_cmd(
    users: int = typer.Option(0, help="Extra random users"),
    topics: int = typer.Option(0, help="Extra random topics"),
):
    """
    Populate the configured store with fixture data (and optional random bulk).

    Only useful with a file or server FORUM_DATABASE_URL; an in-memory store
    is gone as soon as the command exits.
    """
    if is_in_memory(DATABASE_URL):
        typer.echo("⚠️  FORUM_DATABASE_URL is in-memory; seeded data is discarded on exit")
    seeder.seed_random_generators()
    store = ForumStore()
    if not seeder.seed_forum(store, extra_users=users, extra_topics=topics):
        typer.echo("Store already holds data; nothing to do")
        return
    counts = store.table_counts()
    typer.echo(
        f"Seed complete: users={counts['users']}, categories={counts['categories']}, "
        f"topics={counts['topics']}, posts={counts['posts']}"
    )


@app.command("topics")
def topics_cmd(
    category: Optional[int] = typer.Option(None, "--category", "-c", help="Category id to filter by"),
    latency: int = LATENCY_OPTION,
):
    """List topics by most recent activity."""
    service = _service(latency)
    topics = asyncio.run(service.list_topics(category))

    if not topics:
        typer.echo("No topics found")
        return

    typer.echo(f"{'ID':<5} {'Title':<52} {'Category':<14} {'Replies':>7} {'Views':>6}  Last activity")
    typer.echo("─" * 110)
    for t in topics:
        typer.echo(
            f"{t.id:<5} {t.title[:50]:<52} {t.category.name[:12]:<14} "
            f"{t.reply_count:>7} {t.view_count:>6}  {t.last_posted_at:%Y-%m-%d %H:%M}"
        )


@app.command("thread")
def thread_cmd(
    topic_id: int = typer.Argument(..., help="Topic id"),
    latency: int = LATENCY_OPTION,
):
    """Show a topic with all of its posts."""
    service = _service(latency)
    topic = asyncio.run(service.get_topic(topic_id))
    if topic is None:
        typer.echo(f"Topic {topic_id} not found", err=True)
        raise typer.Exit(1)

    posts = asyncio.run(service.list_posts_for_topic(topic_id))
    typer.echo(f"\n{topic.title}  [{topic.category.name}]")
    typer.echo(f"{topic.reply_count} replies · {topic.view_count} views")
    for post in posts:
        typer.echo("─" * 60)
        typer.echo(f"#{post.post_number} @{post.author.username}  {post.created_at:%Y-%m-%d %H:%M}  ♥ {post.likes}")
        for block in render_content(post.content):
            typer.echo(f"    {block.text}" if block.kind == CODE else block.text)


@app.command("profile")
def profile_cmd(
    user_id: str = typer.Argument(..., help="User id"),
    latency: int = LATENCY_OPTION,
):
    """Show a user's topics and replies."""
    service = _service(latency)
    user = asyncio.run(service.get_user(user_id))
    if user is None:
        typer.echo(f"User {user_id} not found", err=True)
        raise typer.Exit(1)

    topics = asyncio.run(service.list_topics_by_user(user_id))
    replies = asyncio.run(service.list_posts_by_user(user_id))
    badge = " (admin)" if user.is_admin else ""
    typer.echo(f"\n{user.name} @{user.username}{badge}, joined {user.joined_at:%Y-%m-%d}")
    typer.echo(f"\nTopics ({len(topics)}):")
    for t in topics:
        typer.echo(f"  {t.id:<4} {t.title}")
    typer.echo(f"\nReplies ({len(replies)}):")
    for r in replies:
        typer.echo(f"  in '{r.topic_title}': {r.post.content[:60]}")


@app.command("login")
def login_cmd(
    username: str = typer.Argument(..., help="Username (case-insensitive)"),
    latency: int = typer.Option(SIMULATED_LATENCY_MS, "--latency", help="Simulated latency in ms"),
):
    """Try the mock login."""
    service = _service(latency)
    try:
        user = asyncio.run(service.login(username))
    except ForumError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Logged in as {user.name} (id={user.id}, admin={'yes' if user.is_admin else 'no'})")


@app.command("summary")
def summary_cmd(latency: int = LATENCY_OPTION):
    """Generate the AI activity summary for the admin console."""
    service = _service(latency)

    async def run() -> str:
        return await ActivitySummarizer().summarize(
            await service.list_categories(),
            await service.list_all_topics(),
            await service.list_all_posts(),
        )

    try:
        typer.echo(asyncio.run(run()))
    except ForumError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("forum.main:create_app", factory=True, host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
