# inference/parsing.py

"""
Defensive readers for free-form model output.

Anything that does not look like what the prompt asked for comes back as
None ("no signal"); nothing here raises on bad input.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

_YES_NO = re.compile(r"^[\W_]*(yes|no)\b", re.IGNORECASE)
_JSON_BLOCK = re.compile(r"(\{.*\}|\[.*\])", re.DOTALL)
_NULL_WORDS = {"null", "none", "n/a", "unknown", "nothing"}
_STRIP_CHARS = " \t\r\n\"'`*_.,;:!?()[]{}<>"

MAX_LABEL_LENGTH = 60


def parse_yes_no(text: Optional[str]) -> Optional[bool]:
    if not text:
        return None
    match = _YES_NO.match(text.strip())
    if match is None:
        return None
    return match.group(1).lower() == "yes"


def parse_label(text: Optional[str]) -> Optional[str]:
    """
    First non-empty line, trimmed of quotes, markdown and punctuation.
    "null" (and friends) or an over-long answer means no label.
    """
    if not text:
        return None

    for line in text.splitlines():
        line = line.strip().strip(_STRIP_CHARS)
        if line:
            break
    else:
        return None

    # "Topic: Rust" -> "Rust"
    if ":" in line:
        head, _, tail = line.partition(":")
        if head.strip().lower() in ("topic", "focus", "label", "answer") and tail.strip():
            line = tail.strip().strip(_STRIP_CHARS)

    line = re.sub(r"\s+", " ", line)
    if not line or line.lower() in _NULL_WORDS:
        return None
    if len(line) > MAX_LABEL_LENGTH:
        return None
    return line


def extract_json(text: Optional[str]) -> Optional[Any]:
    if not text:
        return None
    match = _JSON_BLOCK.search(text)
    if match is None:
        return None
    try:
        return json.loads(match.group(1))
    except ValueError:
        return None
