"""
Shared pytest fixtures for manualqa tests.
"""

import threading

import pytest

from manualqa.backends.base import EngineBackend
from manualqa.config import QAConfig
from manualqa.lifecycle import LifecycleListener, LifecycleManager, LifecycleState


# ---------------------------------------------------------------------------
# --llm flag: opt-in to tests that load a real model
# ---------------------------------------------------------------------------


def pytest_addoption(parser):
    parser.addoption(
        "--llm",
        action="store_true",
        default=False,
        help="Run tests marked @pytest.mark.llm (loads a real model; slow).",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "llm: tests that load a real model (skipped by default; run with --llm)"
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--llm"):
        skip_llm = pytest.mark.skip(reason="LLM tests skipped by default; use --llm to run")
        for item in items:
            if item.get_closest_marker("llm"):
                item.add_marker(skip_llm)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeBackend(EngineBackend):
    """Scriptable backend that records calls and concurrent use."""

    name = "fake"

    def __init__(self):
        self.load_error = None
        self.generate_error = None
        self.load_gate = None
        self.generate_gate = None
        self.loads = 0
        self.unloads = 0
        self.prompts = []
        self.max_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def _enter(self):
        with self._lock:
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)

    def _exit(self):
        with self._lock:
            self._in_flight -= 1

    def load(self, path, config):
        self._enter()
        try:
            if self.load_gate is not None:
                self.load_gate.wait(5.0)
            if self.load_error is not None:
                raise self.load_error
            self.loads += 1
        finally:
            self._exit()

    def unload(self):
        self.unloads += 1

    def generate(self, prompt):
        self._enter()
        try:
            if self.generate_gate is not None:
                self.generate_gate.wait(5.0)
            if self.generate_error is not None:
                raise self.generate_error
            self.prompts.append(prompt)
            return f"answer to: {prompt}"
        finally:
            self._exit()


class RecordingListener(LifecycleListener):
    """Collects notifications; tests block on ``wait_for`` until they arrive."""

    def __init__(self):
        self.events = []
        self.messages = []
        self.threads = []
        self._cond = threading.Condition()

    def _record(self, event):
        with self._cond:
            self.events.append(event)
            self.threads.append(threading.current_thread().name)
            self._cond.notify_all()

    def on_state_changed(self, state):
        self._record(("state", state))

    def on_answer(self, question, answer):
        self._record(("answer", question, answer))

    def on_error(self, kind, message, phase):
        self.messages.append(message)
        self._record(("error", kind, phase))

    def wait_for(self, predicate, timeout=5.0):
        with self._cond:
            ok = self._cond.wait_for(lambda: predicate(self.events), timeout)
        assert ok, f"timed out waiting; events so far: {self.events}"

    def wait_for_state(self, state, count=1, timeout=5.0):
        self.wait_for(lambda ev: ev.count(("state", state)) >= count, timeout)

    def states(self):
        return [e[1] for e in self.events if e[0] == "state"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "car_manual_model.bin"
    path.write_text("weights")
    return path


@pytest.fixture
def config(model_file):
    return QAConfig(model_path=str(model_file), backend="mock", shutdown_timeout_s=5.0)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def make_manager(config, backend, listener):
    """Build managers wired to the fake backend; all are shut down after the test."""
    managers = []

    def _make(cfg=None, **kwargs):
        kwargs.setdefault("listener", listener)
        kwargs.setdefault("backend_factory", lambda: backend)
        mgr = LifecycleManager(cfg or config, **kwargs)
        managers.append(mgr)
        return mgr

    yield _make

    if backend.load_gate is not None:
        backend.load_gate.set()
    if backend.generate_gate is not None:
        backend.generate_gate.set()
    for mgr in managers:
        mgr.shutdown()


@pytest.fixture
def ready_manager(make_manager, listener):
    mgr = make_manager()
    mgr.request_load()
    listener.wait_for_state(LifecycleState.READY)
    return mgr
