"""Background worker thread: runs one task at a time against the model handle."""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, Optional

from manualqa.backends.base import EngineBackend
from manualqa.errors import ErrorKind, InvalidStateError, ModelError
from manualqa.model_handle import ModelHandle
from manualqa.tasks import Answer, AnswerTask, Error, LoadTask, Loaded, Outcome, Task

logger = logging.getLogger(__name__)

_STOP = object()


class InferenceWorker(threading.Thread):
    """The only thread that ever touches the model handle.

    Tasks are executed strictly in submission order; ``on_outcome`` is called
    exactly once per task, from this thread, before the next task starts.
    """

    def __init__(
        self,
        on_outcome: Callable[[Task, Outcome], None],
        backend_factory: Callable[[], EngineBackend],
        name: str = "manualqa-worker",
    ) -> None:
        super().__init__(daemon=True, name=name)
        self._tasks: "queue.Queue[object]" = queue.Queue()
        self._on_outcome = on_outcome
        self._backend_factory = backend_factory
        self._handle: Optional[ModelHandle] = None
        self._stopping = threading.Event()
        self._active = 0
        self._peak_active = 0

    @property
    def active_tasks(self) -> int:
        return self._active

    @property
    def peak_active_tasks(self) -> int:
        return self._peak_active

    def submit(self, task: Task) -> None:
        if self._stopping.is_set():
            raise InvalidStateError("Worker is stopped")
        self._tasks.put(task)

    def stop(self) -> None:
        """Ask the worker to exit after the current task and close the handle."""
        if self._stopping.is_set():
            return
        self._stopping.set()
        self._tasks.put(_STOP)

    def run(self) -> None:
        try:
            while True:
                task = self._tasks.get()
                if task is _STOP:
                    break
                outcome = self.execute(task)
                try:
                    self._on_outcome(task, outcome)
                except Exception:
                    logger.exception("Outcome callback failed for %s", type(task).__name__)
        finally:
            self._close_handle()

    def execute(self, task: Task) -> Outcome:
        self._active += 1
        self._peak_active = max(self._peak_active, self._active)
        try:
            if isinstance(task, LoadTask):
                return self._load(task)
            return self._answer(task)
        except ModelError as e:
            return Error(e.kind, str(e))
        except Exception as e:
            logger.exception("Unexpected failure running %s", type(task).__name__)
            kind = ErrorKind.LOAD_ERROR if isinstance(task, LoadTask) else ErrorKind.INFERENCE_ERROR
            return Error(kind, str(e))
        finally:
            self._active -= 1

    def _load(self, task: LoadTask) -> Outcome:
        self._close_handle()
        logger.info("Loading model from %s", task.path)
        start = time.monotonic()
        self._handle = ModelHandle.open(task.path, task.configuration, self._backend_factory())
        logger.info("Model loaded in %.1fs", time.monotonic() - start)
        return Loaded()

    def _answer(self, task: AnswerTask) -> Outcome:
        if self._handle is None:
            raise InvalidStateError("No model loaded")
        start = time.monotonic()
        text = self._handle.generate(task.question)
        logger.info("Generated %d chars in %.1fs", len(text), time.monotonic() - start)
        return Answer(text)

    def _close_handle(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            handle.close()
        except Exception:
            logger.exception("Failed to close model %s", handle.path)
