"""Lifecycle manager: the state machine in front of the inference worker.

The presentation layer calls ``request_load``, ``request_answer`` and
``shutdown``; none of them block on model work. Results come back through a
``LifecycleListener``:

    Unloaded --request_load--> Loading --Loaded--> Ready <--> Busy
    Loading --Error--> Failed --request_load--> Loading

Answer requests are only admitted in ``Ready``. Anything else is rejected
with an ``INVALID_STATE`` error instead of being queued, so there is never
more than one task pending.
"""

from __future__ import annotations

import functools
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from manualqa.backends import BACKENDS
from manualqa.backends.base import EngineBackend
from manualqa.config import QAConfig
from manualqa.dispatch import Dispatcher, inline_dispatch
from manualqa.errors import ErrorKind
from manualqa.tasks import Answer, AnswerTask, Error, LoadTask, Loaded, Outcome, Task
from manualqa.worker import InferenceWorker

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    BUSY = "busy"
    FAILED = "failed"


class Phase(str, Enum):
    LOADING = "loading"
    ANSWERING = "answering"


class LifecycleListener:
    """Receives notifications from a LifecycleManager. Override what you need.

    ``shutdown()`` sends no notification of its own: once it has been
    called, ``LifecycleManager.is_shut_down`` is the only terminal signal,
    and any outcome still in flight is dropped. After that the listener only
    hears about rejected requests.
    """

    def on_state_changed(self, state: LifecycleState) -> None:
        pass

    def on_answer(self, question: str, answer: str) -> None:
        pass

    def on_error(self, kind: ErrorKind, message: str, phase: Phase) -> None:
        pass


class LifecycleManager:
    """Owns the worker and the lifecycle state.

    ``dispatch`` decides where worker outcomes are handled. With a
    ``CallQueue`` they run on whichever thread drains it; use that for UIs
    and the CLI. The default ``inline_dispatch`` runs them on the worker
    thread while the manager lock is held, which suits tests and headless
    callers.
    """

    def __init__(
        self,
        config: QAConfig,
        listener: Optional[LifecycleListener] = None,
        dispatch: Optional[Dispatcher] = None,
        backend_factory: Optional[Callable[[], EngineBackend]] = None,
    ) -> None:
        if backend_factory is None:
            if config.backend not in BACKENDS:
                raise ValueError(f"Unknown backend type: {config.backend}")
            backend_factory = BACKENDS[config.backend]
        self._config = config
        self._listener = listener or LifecycleListener()
        self._dispatch = dispatch or inline_dispatch
        # Re-entrant so listeners can issue requests from inside a notification.
        self._lock = threading.RLock()
        self._state = LifecycleState.UNLOADED
        self._pending: Optional[Task] = None
        self._seq = 0
        self._shut_down = False
        self._worker = InferenceWorker(self._on_outcome, backend_factory)
        self._worker.start()

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    @property
    def worker(self) -> InferenceWorker:
        return self._worker

    def __enter__(self) -> "LifecycleManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    # ── requests from the presentation layer ─────────────────────────────────

    def request_load(self) -> bool:
        """Start loading the model. Returns False if nothing was enqueued."""
        with self._lock:
            if self._shut_down:
                self._reject("Cannot load after shutdown", Phase.LOADING)
                return False
            if self._state not in (LifecycleState.UNLOADED, LifecycleState.FAILED):
                logger.debug("request_load ignored in state %s", self._state.value)
                return False
            task = LoadTask(
                seq=self._next_seq(),
                path=self._config.resolved_model_path,
                configuration=self._config.generation,
            )
            self._pending = task
            self._state = LifecycleState.LOADING
            self._worker.submit(task)
            self._listener.on_state_changed(LifecycleState.LOADING)
            return True

    def request_answer(self, question: str) -> bool:
        """Ask the loaded model a question. Returns False if the request was rejected."""
        with self._lock:
            if self._shut_down:
                self._reject("Cannot answer after shutdown", Phase.ANSWERING)
                return False
            if self._state != LifecycleState.READY:
                self._reject(
                    f"Model is not ready (state: {self._state.value})", Phase.ANSWERING
                )
                return False
            task = AnswerTask(seq=self._next_seq(), question=question)
            self._pending = task
            self._state = LifecycleState.BUSY
            self._worker.submit(task)
            self._listener.on_state_changed(LifecycleState.BUSY)
            return True

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop accepting work and release the model.

        The task in flight, if any, runs to completion on the worker thread
        and its outcome is discarded. Waits up to ``timeout`` seconds
        (default ``shutdown_timeout_s``) for the worker to finish.
        """
        with self._lock:
            if self._shut_down:
                return
            self._shut_down = True
            self._pending = None
        self._worker.stop()
        if threading.current_thread() is self._worker:
            return
        if timeout is None:
            timeout = self._config.shutdown_timeout_s
        self._worker.join(timeout)
        if self._worker.is_alive():
            logger.warning(
                "Worker still running after %.1fs; model will close when the current task ends",
                timeout,
            )

    # ── outcomes from the worker ─────────────────────────────────────────────

    def _on_outcome(self, task: Task, outcome: Outcome) -> None:
        # Runs on the worker thread.
        self._dispatch(functools.partial(self._apply_outcome, task, outcome))

    def _apply_outcome(self, task: Task, outcome: Outcome) -> None:
        with self._lock:
            if self._pending is None or task.seq != self._pending.seq:
                logger.debug("Discarding stale outcome for task %d", task.seq)
                return
            self._pending = None

            if isinstance(task, LoadTask):
                if isinstance(outcome, Loaded):
                    self._set_state(LifecycleState.READY)
                else:
                    try:
                        self._report(outcome, Phase.LOADING)
                    finally:
                        self._set_state(LifecycleState.FAILED)
                return

            try:
                if isinstance(outcome, Answer):
                    self._listener.on_answer(task.question, outcome.text)
                else:
                    self._report(outcome, Phase.ANSWERING)
            finally:
                self._set_state(LifecycleState.READY)

    # ── helpers ──────────────────────────────────────────────────────────────

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def _set_state(self, state: LifecycleState) -> None:
        self._state = state
        self._listener.on_state_changed(state)

    def _report(self, outcome: Outcome, phase: Phase) -> None:
        if not isinstance(outcome, Error):
            outcome = Error(ErrorKind.INVALID_STATE, f"Unexpected outcome {outcome!r}")
        logger.warning("%s failed (%s): %s", phase.value, outcome.kind.value, outcome.message)
        self._listener.on_error(outcome.kind, outcome.message, phase)

    def _reject(self, message: str, phase: Phase) -> None:
        logger.warning("Rejected request: %s", message)
        self._listener.on_error(ErrorKind.INVALID_STATE, message, phase)
