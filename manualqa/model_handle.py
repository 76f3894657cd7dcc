"""Fail-fast wrapper around a loaded inference engine."""

from __future__ import annotations

import gc
import logging
from enum import Enum
from pathlib import Path
from typing import Union

from manualqa.backends.base import EngineBackend
from manualqa.config import GenerationConfig
from manualqa.errors import (
    ArtifactNotFoundError,
    InferenceError,
    InvalidStateError,
    ModelLoadError,
)

logger = logging.getLogger(__name__)


class HandleStatus(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    CLOSED = "closed"


class ModelHandle:
    """Owns one backend instance and the model loaded into it.

    Not thread-safe: callers serialize access (the inference worker is the
    only thread that touches a handle).
    """

    def __init__(
        self,
        path: Union[str, Path],
        configuration: GenerationConfig,
        backend: EngineBackend,
    ) -> None:
        self.path = Path(path)
        self.configuration = configuration
        self.status = HandleStatus.UNLOADED
        self._backend = backend

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        configuration: GenerationConfig,
        backend: EngineBackend,
    ) -> "ModelHandle":
        handle = cls(path, configuration, backend)
        handle._load()
        return handle

    def _load(self) -> None:
        if self.status != HandleStatus.UNLOADED:
            raise InvalidStateError(f"Cannot load a handle in state {self.status.value}")
        if not self.path.exists():
            raise ArtifactNotFoundError(f"Model file not found: {self.path}")

        self.status = HandleStatus.LOADING
        try:
            self._backend.load(self.path, self.configuration)
        except Exception as e:
            self.status = HandleStatus.UNLOADED
            raise ModelLoadError(f"Error loading model from {self.path}: {e}") from e
        self.status = HandleStatus.READY

    def generate(self, question: str) -> str:
        if self.status != HandleStatus.READY:
            raise InvalidStateError(f"Model is not ready (state: {self.status.value})")
        try:
            return self._backend.generate(question)
        except Exception as e:
            raise InferenceError(f"Error generating response: {e}") from e

    def close(self) -> None:
        """Release the model. Safe to call repeatedly or on a never-opened handle."""
        if self.status == HandleStatus.CLOSED:
            return
        was_loaded = self.status == HandleStatus.READY
        self.status = HandleStatus.CLOSED
        if not was_loaded:
            return
        self._backend.unload()
        gc.collect()
        try:
            import mlx.core as mx

            mx.clear_cache()
        except (ImportError, AttributeError):
            pass
        logger.info("Closed model %s", self.path)
