"""Strict validation of the inference engine's review output.

Two steps, each with its own failure:
  1. extract_json_object() - locate the ``{ ... }`` span in free text
     (NoJsonFoundError when there is none).
  2. parse_verdict() - decode that span and check it against the closed
     three-key schema (SchemaViolationError on any deviation).

The verdict is all-or-nothing: a single bad field rejects the whole response.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum

from gitgandalf_core.errors import NoJsonFoundError, SchemaViolationError

logger = logging.getLogger(__name__)


class Risk(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


REQUIRED_KEYS = ("risk", "issues", "summary")


@dataclass(frozen=True)
class ReviewVerdict:
    risk: Risk
    summary: str
    issues: tuple[str, ...] = field(default_factory=tuple)


def extract_json_object(raw: str) -> str:
    """Return the substring from the first ``{`` to the last ``}``, inclusive."""
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoJsonFoundError()
    return raw[start : end + 1]


def parse_verdict(raw: str) -> ReviewVerdict:
    candidate = extract_json_object(raw)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("Engine output is not valid JSON: %s", candidate[:200])
        raise SchemaViolationError(f"invalid JSON ({e.msg} at position {e.pos})") from e

    if not isinstance(data, dict):
        raise SchemaViolationError("top-level value is not an object")

    missing = [k for k in REQUIRED_KEYS if data.get(k) is None]
    if missing:
        raise SchemaViolationError(f"missing required key(s): {', '.join(missing)}", missing)

    extra = sorted(k for k in data if k not in REQUIRED_KEYS)
    if extra:
        raise SchemaViolationError(f"unexpected key(s): {', '.join(extra)}", extra)

    risk = data["risk"]
    if not isinstance(risk, str) or risk not in Risk.__members__:
        raise SchemaViolationError(f"risk must be one of LOW, MEDIUM, HIGH, got {risk!r}", ["risk"])

    issues = data["issues"]
    if not isinstance(issues, list) or not all(isinstance(i, str) for i in issues):
        raise SchemaViolationError("issues must be a list of strings", ["issues"])

    summary = data["summary"]
    if not isinstance(summary, str) or not summary.strip():
        raise SchemaViolationError("summary must be a non-empty string", ["summary"])

    return ReviewVerdict(risk=Risk(risk), summary=summary, issues=tuple(issues))
