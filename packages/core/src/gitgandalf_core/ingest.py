"""Bounded, line-oriented diff ingestion.

The reader is a fold over the lines of the input stream with one piece of
state: the running UTF-8 byte count of what has been accepted so far. It
stops at the first line that pushes the total past the limit, so an
oversized diff is rejected rather than silently truncated.
"""

from __future__ import annotations

import logging
import re
from typing import IO, Iterable, Iterator

from gitgandalf_core.errors import IngestionStreamError, IngestionTooLargeError

logger = logging.getLogger(__name__)

MAX_INPUT_BYTES = 1_048_576

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def normalized_lines(chunks: Iterable[str | bytes]) -> Iterator[str]:
    """Yield each line of *chunks* without its terminator.

    ``\\r\\n`` and lone ``\\r`` count as line breaks, so the caller sees the
    same lines regardless of the platform that produced the diff.
    """
    for chunk in chunks:
        if isinstance(chunk, bytes):
            chunk = chunk.decode("utf-8")
        parts = _LINE_BREAK_RE.split(chunk)
        if parts[-1] == "":
            # chunk ended with a terminator
            parts.pop()
        yield from parts


def read_diff(stream: IO, max_bytes: int = MAX_INPUT_BYTES) -> str:
    """Read *stream* to end-of-stream and return the normalized diff text.

    Every line is re-terminated with a single ``\\n``. Raises
    IngestionTooLargeError the moment the accumulated text exceeds
    *max_bytes* and IngestionStreamError on any read failure or text that is not valid UTF-8.
    """
    lines: list[str] = []
    total = 0
    try:
        for line in normalized_lines(stream):
            line += "\n"
            total += len(line.encode("utf-8"))
            if total > max_bytes:
                logger.warning("Input exceeded %d bytes; aborting ingestion", max_bytes)
                raise IngestionTooLargeError(max_bytes)
            lines.append(line)
    except (OSError, UnicodeError) as e:
        raise IngestionStreamError(f"Could not read diff from input: {e}") from e

    logger.debug("Ingested %d line(s), %d byte(s)", len(lines), total)
    return "".join(lines)
