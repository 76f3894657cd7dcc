"""MLX-LM text generation backend."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from manualqa.backends.base import EngineBackend
from manualqa.config import GenerationConfig


class MLXBackend(EngineBackend):
    name = "mlx"

    def __init__(self) -> None:
        self._model = None
        self._tokenizer = None
        self._config: Optional[GenerationConfig] = None
        self._sampler = None

    def load(self, path: Path, config: GenerationConfig) -> None:
        import mlx_lm
        from mlx_lm.sample_utils import make_sampler

        self._model, self._tokenizer = mlx_lm.load(str(path))
        self._sampler = make_sampler(temp=config.temperature, top_k=config.top_k)
        self._config = config

    def unload(self) -> None:
        self._model = None
        self._tokenizer = None
        self._sampler = None
        self._config = None

    def generate(self, prompt: str) -> str:
        if self._model is None:
            raise RuntimeError("MLXBackend not loaded")

        import mlx_lm

        # Apply chat template if available
        if getattr(self._tokenizer, "chat_template", None):
            messages = [{"role": "user", "content": prompt}]
            prompt = self._tokenizer.apply_chat_template(
                messages, tokenize=False, add_generation_prompt=True
            )

        return mlx_lm.generate(
            self._model,
            self._tokenizer,
            prompt=prompt,
            max_tokens=self._config.max_tokens,
            sampler=self._sampler,
            verbose=False,
        )
