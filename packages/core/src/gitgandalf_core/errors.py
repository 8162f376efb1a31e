"""Failure taxonomy for a review run.

Every error here is terminal for the current run: the core raises, the CLI
catches ``GandalfError`` once, prints the message and exits non-zero.
Nothing is retried.
"""

from __future__ import annotations


class GandalfError(Exception):
    """Base class for every failure that ends a review run."""


class ConfigError(GandalfError):
    """The configuration file or an override holds an unusable value."""


# --------------------------------------------------------------------------- #
# Ingestion                                                                    #
# --------------------------------------------------------------------------- #


class IngestionError(GandalfError):
    pass


class IngestionTooLargeError(IngestionError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Diff exceeds the {limit}-byte input limit; refusing to review a truncated diff.")


class IngestionStreamError(IngestionError):
    pass


# --------------------------------------------------------------------------- #
# Inference engine invocation                                                  #
# --------------------------------------------------------------------------- #


class InvocationError(GandalfError):
    pass


class ToolUnavailableError(InvocationError):
    """The engine executable is missing or not executable."""

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(f"Inference engine {executable!r} is not installed or not executable.")


class SpawnError(InvocationError):
    pass


class EngineTimeoutError(InvocationError):
    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Inference engine timed out after {timeout_seconds:g}s and was terminated.")


class EngineFailureError(InvocationError):
    def __init__(self, returncode: int, stderr: str):
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "(no error output)"
        super().__init__(f"Inference engine exited with status {returncode}: {detail}")


# --------------------------------------------------------------------------- #
# Engine response                                                              #
# --------------------------------------------------------------------------- #


class ResponseError(GandalfError):
    pass


class NoJsonFoundError(ResponseError):
    def __init__(self):
        super().__init__("Inference engine output contains no JSON object.")


class SchemaViolationError(ResponseError):
    def __init__(self, message: str, offending_keys: list[str] | None = None):
        self.offending_keys = list(offending_keys or [])
        super().__init__(f"Engine response violates the review schema: {message}")


class InternalConsistencyError(GandalfError):
    """A validated value reached a stage that has no rule for it."""
