"""Splitting model replies into chat text and website code."""

import re
from typing import NamedTuple, Optional

# An ```html block, or else any fenced block. Only the first match counts.
CODE_BLOCK_RE = re.compile(r"```html\n([\s\S]*?)```|```([\s\S]*?)```", re.IGNORECASE)

FILE_MARKER = "[FILE CONTENT:"
FILE_END_MARKER = "[/FILE]"
FILE_PLACEHOLDER = "\n[File Attached]"


class ParsedResponse(NamedTuple):
    message: str
    code: Optional[str]


def parse_response(text: str, placeholder: str) -> ParsedResponse:
    """Extract the first fenced code block from a model reply.

    Without a block the whole reply is the message and ``code`` is None, so
    the caller keeps its current code. With a block, the message is what is
    left after removing it, or ``placeholder`` when nothing is left. A block
    with no content also yields ``code`` None.
    """
    match = CODE_BLOCK_RE.search(text)
    if not match:
        return ParsedResponse(text, None)

    code = match.group(1) or match.group(2)
    message = (text[: match.start()] + text[match.end():]).strip()
    code = code.strip() if code else ""
    return ParsedResponse(message or placeholder, code or None)


def attach_file(text: str, name: str, content: str) -> str:
    """Append a file's contents to a chat request."""
    return f"{text}\n\n{FILE_MARKER} {name}]\n{content}\n{FILE_END_MARKER}\n"


def display_text(text: str) -> str:
    """Message text with attached file contents collapsed to a marker."""
    parts = text.split(FILE_MARKER)
    return parts[0] + FILE_PLACEHOLDER * (len(parts) - 1)
