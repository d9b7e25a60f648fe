"""Split practice text into sentence-level phrases."""

from __future__ import annotations

import re
from typing import Optional

from ..settings import get_settings

_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")


def split_into_phrases(text: str) -> list[str]:
    """Split on whitespace that follows ``.``, ``!`` or ``?``, keeping the mark."""
    if not text:
        return []
    return [chunk.strip() for chunk in _SENTENCE_BREAK.split(text) if chunk.strip()]


def strip_comments(text: str) -> str:
    """Drop ``/* */`` blocks and lines starting with ``//`` or ``==``."""
    without_blocks = _BLOCK_COMMENT.sub("", text)
    kept = []
    for line in without_blocks.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed in {"/*", "*/"}:
            continue
        if trimmed.startswith("//") or trimmed.startswith("=="):
            continue
        kept.append(line)
    return "\n".join(kept).strip()


def prepare_phrases(text: str, *, drop_comments: Optional[bool] = None) -> list[str]:
    """Split ``text``; comment stripping follows the settings unless given."""
    if drop_comments is None:
        drop_comments = get_settings().strip_comments
    if drop_comments:
        text = strip_comments(text)
    return split_into_phrases(text)


__all__ = ["prepare_phrases", "split_into_phrases", "strip_comments"]
