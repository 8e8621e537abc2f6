"""Line-oriented interpretation of post content."""

from dataclasses import dataclass
from typing import List

CODE = "code"
PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class ContentBlock:
    kind: str
    text: str


def render_content(content: str) -> List[ContentBlock]:
    """
    Split post content into display blocks.

    A line wrapped in single backticks becomes a code block, blank lines are
    dropped and every other line becomes a paragraph.
    """
    blocks: List[ContentBlock] = []
    for line in content.split("\n"):
        if len(line) >= 2 and line.startswith("`") and line.endswith("`"):
            blocks.append(ContentBlock(kind=CODE, text=line[1:-1]))
        elif line.strip() == "":
            continue
        else:
            blocks.append(ContentBlock(kind=PARAGRAPH, text=line))
    return blocks


def snippet(content: str, length: int = 50) -> str:
    """First `length` characters of the content, marked as truncated."""
    return f"{content[:length]}..."
