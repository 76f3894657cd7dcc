"""On-device question answering over a local language model."""

from manualqa.config import GenerationConfig, QAConfig, load_config
from manualqa.dispatch import CallQueue, inline_dispatch
from manualqa.errors import (
    ArtifactNotFoundError,
    ErrorKind,
    InferenceError,
    InvalidStateError,
    ModelError,
    ModelLoadError,
)
from manualqa.lifecycle import LifecycleListener, LifecycleManager, LifecycleState, Phase
from manualqa.model_handle import HandleStatus, ModelHandle

__all__ = [
    "ArtifactNotFoundError",
    "CallQueue",
    "ErrorKind",
    "GenerationConfig",
    "HandleStatus",
    "InferenceError",
    "InvalidStateError",
    "LifecycleListener",
    "LifecycleManager",
    "LifecycleState",
    "ModelError",
    "ModelHandle",
    "ModelLoadError",
    "Phase",
    "QAConfig",
    "inline_dispatch",
    "load_config",
]
