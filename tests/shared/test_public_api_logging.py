"""Tests for public API instrumentation and structured logging helpers."""

from __future__ import annotations

import io
import json
import logging
from typing import Any

import pytest

from packages.tablefs_shared.errors import not_found_error
from packages.tablefs_shared.logging import (
    CompletionContext,
    InvocationContext,
    PublicApiTracingConcern,
    bind_context,
    clear_context,
    configure_logging,
    get_context,
    log_context,
    public_api_logged,
)
from packages.tablefs_shared.logging.config import (
    ContextFilter,
    JsonFormatter,
    PlainFormatter,
)
from packages.tablefs_shared.result import Result, failure, success


class _RecordingConcern:
    """Concern fake capturing invocation and completion events."""

    def __init__(self) -> None:
        self.invocations: list[InvocationContext] = []
        self.completions: list[CompletionContext] = []

    def on_invocation(self, context: InvocationContext) -> None:
        self.invocations.append(context)

    def on_completion(self, context: CompletionContext) -> None:
        self.completions.append(context)


class _FailingConcern:
    """Concern fake raising from every hook."""

    def on_invocation(self, context: InvocationContext) -> None:
        raise RuntimeError("invocation hook broke")

    def on_completion(self, context: CompletionContext) -> None:
        raise RuntimeError("completion hook broke")


class _FakeSpan:
    """In-memory fake span capturing attributes and status updates."""

    def __init__(self) -> None:
        self.attributes: dict[str, object] = {}
        self.statuses: list[object] = []

    def set_attribute(self, key: str, value: object) -> None:
        self.attributes[key] = value

    def set_status(self, status: object) -> None:
        self.statuses.append(status)


class _FakeSpanManager:
    """Fake span context manager used by the fake tracer."""

    def __init__(self, span: _FakeSpan) -> None:
        self.span = span
        self.exited = False

    def __enter__(self) -> _FakeSpan:
        return self.span

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        del exc_type, exc, tb
        self.exited = True


class _FakeTracer:
    """Fake tracer returning tracked span context managers."""

    def __init__(self) -> None:
        self.names: list[str] = []
        self.managers: list[_FakeSpanManager] = []

    def start_as_current_span(self, name: str) -> _FakeSpanManager:
        self.names.append(name)
        manager = _FakeSpanManager(_FakeSpan())
        self.managers.append(manager)
        return manager


def _component(concern: Any) -> Any:
    """Build a component whose public methods carry ``concern``."""

    class _Component:
        def __init__(self) -> None:
            self._logger = logging.getLogger("tablefs.tests.public_api")

        @public_api_logged(
            component_id="service_demo", id_fields=("path",), concerns=[concern]
        )
        def fetch(self, *, path: str) -> Result[str]:
            if path == "missing":
                return failure(errors=[not_found_error("file not found")])
            return success(payload=path.upper())

        @public_api_logged(component_id="service_demo", concerns=[concern])
        def explode(self) -> None:
            raise ValueError("kaboom")

    return _Component()


def test_concerns_receive_invocation_and_completion() -> None:
    """Concerns should see references, outcome and error summaries."""
    concern = _RecordingConcern()
    component = _component(concern)

    assert component.fetch(path="a.txt").unwrap() == "A.TXT"
    component.fetch(path="missing")

    assert [c.references for c in concern.invocations][-2:] == [
        {"path": "a.txt"},
        {"path": "missing"},
    ]
    ok, failed = concern.completions[-2:]
    assert ok.success is True
    assert ok.errors == []
    assert failed.success is False
    assert failed.errors == ["NOT_FOUND: file not found"]
    assert failed.duration_ms >= 0


def test_raised_exceptions_are_reported_and_propagated() -> None:
    """Exceptions should be summarized as failures and re-raised unchanged."""
    concern = _RecordingConcern()
    component = _component(concern)

    with pytest.raises(ValueError, match="kaboom"):
        component.explode()

    assert concern.completions[-1].success is False
    assert concern.completions[-1].errors == ["ValueError: kaboom"]


def test_failing_concern_never_breaks_the_call(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Concern failures should be logged and isolated from the result."""
    component = _component(_FailingConcern())

    with caplog.at_level(logging.WARNING, logger="tablefs.tests.public_api"):
        assert component.fetch(path="x").unwrap() == "X"

    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("Public API instrumentation concern failed") == 2


def test_completion_logs_use_instance_logger(caplog: pytest.LogCaptureFixture) -> None:
    """Completion should log at info on success and warning on failure."""
    component = _component(_RecordingConcern())

    with caplog.at_level(logging.DEBUG, logger="tablefs.tests.public_api"):
        component.fetch(path="ok")
        component.fetch(path="missing")

    levels = [
        record.levelno
        for record in caplog.records
        if record.getMessage() == "Public API completion"
    ]
    assert levels == [logging.INFO, logging.WARNING]


def test_tracing_concern_starts_and_completes_span_with_attributes() -> None:
    """Completion should set standard attributes and close the span context."""
    tracer = _FakeTracer()
    concern = PublicApiTracingConcern(tracer=tracer)
    invocation = InvocationContext(
        component_id="service_file_store",
        api_name="write",
        references={"path": "/a.txt"},
    )

    concern.on_invocation(invocation)
    concern.on_completion(
        CompletionContext(
            invocation=invocation, success=True, duration_ms=1.5, errors=[]
        )
    )

    assert tracer.names == ["public_api.service_file_store.write"]
    manager = tracer.managers[0]
    assert manager.exited
    assert manager.span.attributes["reference.path"] == "/a.txt"
    assert manager.span.attributes["outcome"] == "success"
    assert manager.span.attributes["errors.count"] == 0


def test_log_context_binds_and_restores() -> None:
    """Scoped context should be visible inside the block only."""
    clear_context()
    bind_context(service="tablefs", skipped=None)

    with log_context({"path": "/a.txt"}):
        assert get_context() == {"service": "tablefs", "path": "/a.txt"}

    assert get_context() == {"service": "tablefs"}
    clear_context("service")
    assert get_context() == {}


def test_json_formatter_includes_context_fields() -> None:
    """JSON logs should carry core fields plus bound context."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger("tablefs.tests.json")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    try:
        with log_context({"table": "storage"}):
            logger.info("stored %s", "a.txt")
    finally:
        logger.removeHandler(handler)
        logger.propagate = True

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "stored a.txt"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "tablefs.tests.json"
    assert payload["table"] == "storage"


def test_plain_formatter_appends_sorted_context() -> None:
    """Plain logs should end with sorted key=value context pairs."""
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", (), None)
    record.context = {"table": "storage", "path": "/a"}

    assert PlainFormatter().format(record).endswith("hello path=/a table=storage")


def test_configure_logging_installs_single_stdout_handler() -> None:
    """Repeated configuration should never duplicate root handlers."""
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging(level="debug", json_output=False, service="tablefs")
        configure_logging(level="INFO", json_output=True, environment="test")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.INFO
        assert get_context()["environment"] == "test"
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        clear_context()
