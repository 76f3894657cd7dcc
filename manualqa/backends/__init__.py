"""Backend registry."""

from manualqa.backends.base import EngineBackend
from manualqa.backends.llama_cpp import LlamaCppBackend
from manualqa.backends.mlx import MLXBackend
from manualqa.backends.mock import MockBackend

BACKENDS: dict[str, type[EngineBackend]] = {
    "mlx": MLXBackend,
    "llama_cpp": LlamaCppBackend,
    "mock": MockBackend,
}

__all__ = [
    "EngineBackend",
    "LlamaCppBackend",
    "MLXBackend",
    "MockBackend",
    "BACKENDS",
]
