"""llama.cpp backend for single-file GGUF artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from manualqa.backends.base import EngineBackend
from manualqa.config import GenerationConfig


class LlamaCppBackend(EngineBackend):
    name = "llama_cpp"

    def __init__(self, n_ctx: int = 2048) -> None:
        self._llm = None
        self._config: Optional[GenerationConfig] = None
        self._n_ctx = n_ctx

    def load(self, path: Path, config: GenerationConfig) -> None:
        from llama_cpp import Llama

        if not path.is_file():
            raise ValueError(f"Expected a GGUF file, got directory: {path}")
        self._llm = Llama(model_path=str(path), n_ctx=self._n_ctx, verbose=False)
        self._config = config

    def unload(self) -> None:
        if self._llm is not None:
            self._llm.close()
        self._llm = None
        self._config = None

    def generate(self, prompt: str) -> str:
        if self._llm is None:
            raise RuntimeError("LlamaCppBackend not loaded")
        result = self._llm(
            prompt,
            max_tokens=self._config.max_tokens,
            top_k=self._config.top_k,
            temperature=self._config.temperature,
        )
        return result["choices"][0]["text"]
