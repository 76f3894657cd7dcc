"""Error kinds raised by the model handle and carried in worker outcomes."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    LOAD_ERROR = "load_error"
    INVALID_STATE = "invalid_state"
    INFERENCE_ERROR = "inference_error"


class ModelError(Exception):
    """Base class for failures reported through ``on_error``."""

    kind: ErrorKind = ErrorKind.LOAD_ERROR


class ArtifactNotFoundError(ModelError):
    kind = ErrorKind.NOT_FOUND


class ModelLoadError(ModelError):
    kind = ErrorKind.LOAD_ERROR


class InvalidStateError(ModelError):
    kind = ErrorKind.INVALID_STATE


class InferenceError(ModelError):
    kind = ErrorKind.INFERENCE_ERROR
