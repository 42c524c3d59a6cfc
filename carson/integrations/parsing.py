"""
Defensive parsing of model output.

Model text is untrusted. ``parse_model_output`` turns it into a tagged
result: ``Ok`` with the decoded JSON object, or ``Malformed`` with the raw
text for the caller's secondary stage (keyword scan, then heuristics).
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

from carson.core.exceptions import MalformedModelOutputError

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class Ok:
    """Model output decoded to a JSON object."""
    value: dict[str, Any]

    def unwrap(self) -> dict[str, Any]:
        return self.value


@dataclass(frozen=True)
class Malformed:
    """Model output that is not a JSON object."""
    raw: str

    def unwrap(self) -> dict[str, Any]:
        raise MalformedModelOutputError(self.raw)


ParseResult = Union[Ok, Malformed]


def parse_model_output(content: str | None) -> ParseResult:
    """
    Parse model text as a JSON object.

    The whole text is tried first, then the outermost ``{...}`` block so
    that fenced or chatty responses still decode.
    """
    text = (content or "").strip()
    if not text:
        return Malformed(raw="")

    for candidate in _candidates(text):
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, dict):
            return Ok(value=data)

    return Malformed(raw=text)


def _candidates(text: str) -> list[str]:
    candidates = [text]
    match = JSON_OBJECT.search(text)
    if match and match.group(0) != text:
        candidates.append(match.group(0))
    return candidates
