"""Abstract base class for inference engine backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from manualqa.config import GenerationConfig


class EngineBackend(ABC):
    """Base class for local inference engines.

    A backend holds at most one loaded model. The worker thread calls
    load/generate/unload in sequence, never concurrently.
    """

    name: str = ""

    @abstractmethod
    def load(self, path: Path, config: "GenerationConfig") -> None:
        """Load the model artifact at ``path`` into memory."""
        ...

    @abstractmethod
    def unload(self) -> None:
        """Release the model and free its memory."""
        ...

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Run inference and return the generated text."""
        ...
