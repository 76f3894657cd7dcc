"""Configuration for the question-answering front end."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = "~/.config/manualqa/config.yaml"
MODEL_PATH_ENV = "MANUALQA_MODEL_PATH"


@dataclass(frozen=True)
class GenerationConfig:
    max_tokens: int = 512
    top_k: int = 40
    temperature: float = 0.8

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")
        if self.top_k <= 0:
            raise ValueError(f"top_k must be positive, got {self.top_k}")
        if self.temperature < 0:
            raise ValueError(f"temperature must be >= 0, got {self.temperature}")


@dataclass
class QAConfig:
    model_path: str = "~/models/car_manual_model"
    backend: str = "mlx"
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    shutdown_timeout_s: float = 5.0
    log_level: str = "info"

    @property
    def resolved_model_path(self) -> Path:
        return Path(os.path.expanduser(self.model_path))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QAConfig":
        """Build a config from the parsed YAML mapping, validating keys."""
        if not isinstance(data, dict):
            raise ValueError("Config must be a mapping")
        known = {"model_path", "backend", "generation", "shutdown_timeout_s", "log_level"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        generation = data.get("generation") or {}
        if not isinstance(generation, dict):
            raise ValueError("'generation' must be a mapping")

        from manualqa.backends import BACKENDS

        backend = data.get("backend", cls.backend)
        if backend not in BACKENDS:
            raise ValueError(
                f"Unknown backend '{backend}' (expected one of: {', '.join(sorted(BACKENDS))})"
            )

        timeout = float(data.get("shutdown_timeout_s", cls.shutdown_timeout_s))
        if timeout < 0:
            raise ValueError(f"shutdown_timeout_s must be >= 0, got {timeout}")

        return cls(
            model_path=str(data.get("model_path", cls.model_path)),
            backend=backend,
            generation=GenerationConfig(**generation),
            shutdown_timeout_s=timeout,
            log_level=str(data.get("log_level", cls.log_level)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_config(path: str = DEFAULT_CONFIG_PATH) -> QAConfig:
    """Load the YAML config, applying the model path override from the environment.

    If the file does not exist, creates it with the default config.
    """
    expanded = Path(os.path.expanduser(path))
    if not expanded.exists():
        config = QAConfig()
        expanded.parent.mkdir(parents=True, exist_ok=True)
        expanded.write_text(yaml.dump(config.to_dict(), default_flow_style=False))
    else:
        with open(expanded) as f:
            data = yaml.safe_load(f) or {}
        try:
            config = QAConfig.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid config at {expanded}: {e}") from e

    override = os.environ.get(MODEL_PATH_ENV)
    if override:
        config.model_path = override
    return config
