"""
Turn a raw chat-completion message into the resume and cover letter texts.

Two steps:
1. Message content -> plain text. Content is either a string or a list of
   parts (plain strings, {"text": "..."} or {"text": {"value": "..."}}).
2. Plain text -> the <resume> and <cover_letter> sections requested by
   core.prompts.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple, Union

from backend.applykit.core.errors import FormatError, ResponseFormatError
from backend.applykit.core.prompts import COVER_LETTER_TAG, RESUME_TAG


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class PartsContent:
    parts: Tuple[Any, ...]


ResponseContent = Union[TextContent, PartsContent]


@dataclass(frozen=True)
class TaggedSections:
    resume_text: str
    cover_letter_text: str


def classify_content(raw: Any) -> ResponseContent:
    if isinstance(raw, str):
        return TextContent(raw)
    if isinstance(raw, (list, tuple)):
        return PartsContent(tuple(raw))
    raise ResponseFormatError(f"Unexpected message content type: {type(raw).__name__}")


def _part_text(part: Any) -> str:
    if isinstance(part, str):
        return part
    if isinstance(part, dict):
        text = part.get("text")
        if isinstance(text, str):
            return text
        if isinstance(text, dict) and isinstance(text.get("value"), str):
            return text["value"]
    return ""


def _text_from_text(content: TextContent) -> str:
    return content.text


def _text_from_parts(content: PartsContent) -> str:
    return "\n".join(_part_text(p) for p in content.parts).strip()


def extract_output_text(raw: Any) -> str:
    """Raises ResponseFormatError when the content holds no text."""
    content = classify_content(raw)
    if isinstance(content, TextContent):
        text = _text_from_text(content)
    else:
        text = _text_from_parts(content)

    if not text.strip():
        raise ResponseFormatError("Model returned an unexpected response format.")
    return text


# -----------------------
# tagged sections
# -----------------------
def _find_tag(text: str, tag: str, start: int = 0) -> int:
    """Index of ``tag`` in ``text`` at or after ``start`` (ASCII case-insensitive), or -1."""
    size = len(tag)
    for i in range(start, len(text) - size + 1):
        if text[i] == "<" and text[i:i + size].lower() == tag:
            return i
    return -1


def extract_section(text: str, name: str) -> Optional[str]:
    """Inner text of the first <name>...</name> block, trimmed; None if absent."""
    open_tag = f"<{name}>"
    close_tag = f"</{name}>"

    start = _find_tag(text, open_tag)
    if start < 0:
        return None
    body_start = start + len(open_tag)

    end = _find_tag(text, close_tag, body_start)
    if end < 0:
        return None
    return text[body_start:end].strip()


def parse_tagged_sections(raw_text: str) -> TaggedSections:
    resume = extract_section(raw_text, RESUME_TAG)
    cover_letter = extract_section(raw_text, COVER_LETTER_TAG)

    missing: Sequence[str] = [
        tag for tag, value in ((RESUME_TAG, resume), (COVER_LETTER_TAG, cover_letter)) if value is None
    ]
    if missing:
        raise FormatError(f"Generated content is missing sections: {', '.join(missing)}")

    return TaggedSections(resume_text=resume, cover_letter_text=cover_letter)
