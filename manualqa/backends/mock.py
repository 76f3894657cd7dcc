"""Mock backend for testing — echoes questions back after a short sleep."""

from __future__ import annotations

import time
from pathlib import Path

from manualqa.backends.base import EngineBackend
from manualqa.config import GenerationConfig


class MockBackend(EngineBackend):
    name = "mock"

    def __init__(self, load_delay: float = 0.01, generate_delay: float = 0.01) -> None:
        self._loaded = False
        self._load_delay = load_delay
        self._generate_delay = generate_delay

    def load(self, path: Path, config: GenerationConfig) -> None:
        time.sleep(self._load_delay)
        if path.is_file() and path.stat().st_size == 0:
            raise ValueError(f"Model artifact is empty: {path}")
        self._loaded = True

    def unload(self) -> None:
        self._loaded = False

    def generate(self, prompt: str) -> str:
        if not self._loaded:
            raise RuntimeError("MockBackend not loaded")
        time.sleep(self._generate_delay)
        return f"[mock] {prompt}"
