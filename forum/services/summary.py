"""
AI-powered activity summary for the admin dashboard.

Builds a prompt from forum aggregates and sends it to the Gemini
generateContent endpoint. The model is an opaque collaborator: it takes text
and returns text, or fails with a configuration or upstream error.
"""

import logging
from typing import Optional, Sequence

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from forum.config import (
    GEMINI_API_KEY,
    GEMINI_API_URL,
    GEMINI_MODEL,
    SUMMARY_RETRY_ATTEMPTS,
    SUMMARY_RETRY_MAX_WAIT,
    SUMMARY_RETRY_MIN_WAIT,
    SUMMARY_TIMEOUT_SECONDS,
)
from forum.errors import SummaryConfigError, SummaryError
from forum.services.markdown import snippet
from forum.services.records import Category, Post, Topic

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 5


def build_summary_prompt(
    categories: Sequence[Category],
    topics: Sequence[Topic],
    posts: Sequence[Post],
    sample_size: int = SAMPLE_SIZE,
) -> str:
    """
    Build the prompt sent to the model.

    Args:
        categories: All categories
        topics: Topics, most recent activity first
        posts: Posts, newest first
        sample_size: How many titles and snippets to include

    Returns:
        Prompt text with counts, recent titles and post snippets
    """
    titles = "\n".join(f"- {t.title}" for t in topics[:sample_size])
    snippets = "\n".join(f'- "{snippet(p.content)}"' for p in posts[:sample_size])
    return (
        "You are an admin assistant for an online forum.\n"
        "Summarize the recent activity of the forum based on the following data.\n"
        "Provide a high-level overview and highlight any interesting trends.\n"
        "\n"
        f"- Total Categories: {len(categories)}\n"
        f"- Total Topics: {len(topics)}\n"
        f"- Total Posts: {len(posts)}\n"
        "\n"
        "Recent Topics (titles):\n"
        f"{titles}\n"
        "\n"
        "Recent Posts (content snippets):\n"
        f"{snippets}\n"
    )


class ActivitySummarizer:
    """Client for the generative summary endpoint."""

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_URL,
        timeout: float = SUMMARY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def summarize(
        self, categories: Sequence[Category], topics: Sequence[Topic], posts: Sequence[Post]
    ) -> str:
        if not self.is_configured:
            raise SummaryConfigError("API key is not configured.")

        prompt = build_summary_prompt(categories, topics, posts)
        try:
            return await self._generate(prompt)
        except httpx.HTTPStatusError as e:
            logger.error("Summary request failed: %s - %s", e.response.status_code, e.response.text)
        except httpx.RequestError as e:
            logger.error("Summary request error: %s", e)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Unexpected summary response shape: %s", e)
        raise SummaryError("Failed to generate summary. Please check your API key and try again.")

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(SUMMARY_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=SUMMARY_RETRY_MIN_WAIT, max=SUMMARY_RETRY_MAX_WAIT),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json={"contents": [{"parts": [{"text": prompt}]}]},
            )
            response.raise_for_status()
            data = response.json()

        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)
