from __future__ import annotations

from gitgandalf_core.engines.command import DEFAULT_TIMEOUT_SECONDS, CommandEngine


class OllamaEngine(CommandEngine):
    """Local model served by ``ollama run <model>``.

    ollama reads the prompt from stdin when it is not a terminal and prints
    the completion to stdout, so it fits CommandEngine unchanged.
    """

    def __init__(
        self,
        model: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        executable: str = "ollama",
    ):
        self.model = model
        super().__init__([executable, "run", model], timeout_seconds=timeout_seconds)
