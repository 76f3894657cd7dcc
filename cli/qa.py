"""CLI: ask the local model questions from the terminal."""

from __future__ import annotations

import dataclasses
import logging
import sys
from typing import Callable, Optional

import click

from manualqa.config import DEFAULT_CONFIG_PATH, QAConfig, load_config
from manualqa.dispatch import CallQueue
from manualqa.errors import ErrorKind
from manualqa.lifecycle import LifecycleListener, LifecycleManager, LifecycleState, Phase

_QUIT_WORDS = {"quit", "exit"}


class ConsoleView(LifecycleListener):
    """Renders lifecycle notifications as terminal output."""

    def __init__(self, config: QAConfig) -> None:
        self.config = config
        self.errors: list[tuple[ErrorKind, str, Phase]] = []
        self._previous: Optional[LifecycleState] = None

    def on_state_changed(self, state: LifecycleState) -> None:
        if state == LifecycleState.LOADING:
            click.echo(f"Loading model from {self.config.resolved_model_path} …")
        elif state == LifecycleState.READY and self._previous == LifecycleState.LOADING:
            click.echo("Model loaded. Ask about maintenance, parts, or troubleshooting.")
        elif state == LifecycleState.BUSY:
            click.echo("Thinking …")
        self._previous = state

    def on_answer(self, question: str, answer: str) -> None:
        click.echo(f"Q: {question}\n\nA: {answer}\n")

    def on_error(self, kind: ErrorKind, message: str, phase: Phase) -> None:
        self.errors.append((kind, message, phase))
        if kind == ErrorKind.NOT_FOUND:
            path = self.config.resolved_model_path
            click.echo(
                f"Model file not found!\n\n"
                f"Copy the model to {path}, or point --model-path / "
                f"$MANUALQA_MODEL_PATH at it.",
                err=True,
            )
        elif kind == ErrorKind.LOAD_ERROR:
            click.echo(
                f"Error loading model:\n\n{message}\n\n"
                "Make sure:\n"
                "1. The model file is valid\n"
                "2. The path is correct\n"
                "3. The machine has enough memory",
                err=True,
            )
        elif kind == ErrorKind.INFERENCE_ERROR:
            click.echo(f"Error generating response:\n\n{message}", err=True)
        else:
            click.echo(f"Error: {message}", err=True)


def _config_options(fn):
    fn = click.option(
        "--log-level",
        default=None,
        type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
        help="Logging level (overrides config).",
    )(fn)
    fn = click.option("--backend", default=None, help="Engine backend: mlx, llama_cpp or mock.")(fn)
    fn = click.option("--model-path", default=None, help="Path to the model artifact.")(fn)
    fn = click.option(
        "--config",
        "config_path",
        default=DEFAULT_CONFIG_PATH,
        show_default=True,
        help="Path to config.yaml (created with defaults if missing).",
    )(fn)
    return fn


def _build_config(
    config_path: str,
    model_path: Optional[str],
    backend: Optional[str],
    log_level: Optional[str],
) -> QAConfig:
    try:
        config = load_config(config_path)
        if backend:
            config = QAConfig.from_dict({**dataclasses.asdict(config), "backend": backend})
    except ValueError as e:
        raise click.ClickException(str(e))
    if model_path:
        config.model_path = model_path
    if log_level:
        config.log_level = log_level
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


def _pump(calls: CallQueue, done: Callable[[], bool]) -> None:
    """Run notifications on this thread until ``done`` holds."""
    while not done():
        calls.drain(timeout=0.1)


def _load(manager: LifecycleManager, calls: CallQueue) -> bool:
    manager.request_load()
    _pump(calls, lambda: manager.state != LifecycleState.LOADING)
    return manager.state == LifecycleState.READY


def _answer(manager: LifecycleManager, calls: CallQueue, question: str) -> None:
    if manager.request_answer(question):
        _pump(calls, lambda: manager.state != LifecycleState.BUSY)
    else:
        calls.drain()


@click.command("check")
@_config_options
def check(config_path, model_path, backend, log_level) -> None:
    """Load the model and report whether it is usable."""
    config = _build_config(config_path, model_path, backend, log_level)
    view = ConsoleView(config)
    calls = CallQueue()
    with LifecycleManager(config, view, dispatch=calls) as manager:
        ok = _load(manager, calls)
    if not ok:
        sys.exit(1)


@click.command("ask")
@click.argument("question")
@_config_options
def ask(question, config_path, model_path, backend, log_level) -> None:
    """Answer a single QUESTION and exit."""
    question = question.strip()
    if not question:
        raise click.UsageError("Please enter a question")
    config = _build_config(config_path, model_path, backend, log_level)
    view = ConsoleView(config)
    calls = CallQueue()
    with LifecycleManager(config, view, dispatch=calls) as manager:
        if _load(manager, calls):
            _answer(manager, calls, question)
    if view.errors:
        sys.exit(1)


@click.command("chat")
@_config_options
def chat(config_path, model_path, backend, log_level) -> None:
    """Interactive question/answer session. Type 'quit' or Ctrl-D to leave."""
    config = _build_config(config_path, model_path, backend, log_level)
    view = ConsoleView(config)
    calls = CallQueue()
    with LifecycleManager(config, view, dispatch=calls) as manager:
        if not _load(manager, calls):
            sys.exit(1)
        while True:
            try:
                question = click.prompt("Question", default="", show_default=False).strip()
            except (click.Abort, EOFError):
                click.echo()
                break
            if question.lower() in _QUIT_WORDS:
                break
            if not question:
                click.echo("Please enter a question", err=True)
                continue
            _answer(manager, calls, question)
