"""Units of work for the inference worker and the outcomes they produce."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from manualqa.config import GenerationConfig
from manualqa.errors import ErrorKind


@dataclass(frozen=True)
class LoadTask:
    seq: int
    path: Path
    configuration: GenerationConfig


@dataclass(frozen=True)
class AnswerTask:
    seq: int
    question: str


Task = Union[LoadTask, AnswerTask]


@dataclass(frozen=True)
class Loaded:
    pass


@dataclass(frozen=True)
class Answer:
    text: str


@dataclass(frozen=True)
class Error:
    kind: ErrorKind
    message: str


Outcome = Union[Loaded, Answer, Error]
