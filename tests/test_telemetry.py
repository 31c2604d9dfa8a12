from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple

import pytest

from undofile.runtime import telemetry


class RecordingLogger:
    def __init__(self) -> None:
        self.lines: List[Tuple[str, Any]] = []
        self.context: Dict[str, str] = {}

    def info_with(self, message: str, pairs: Any) -> None:
        self.lines.append((message, pairs))

    def error_with(self, message: str, pairs: Any) -> None:
        self.lines.append((message, pairs))

    def warning(self, message: str) -> None:
        self.lines.append((message, None))

    def add_context(self, key: str, value: str) -> None:
        self.context[key] = value

    def remove_context(self, key: str) -> None:
        del self.context[key]

    @contextmanager
    def track_component(self, name: str) -> Iterator[None]:
        yield

    @contextmanager
    def profile(self, name: str) -> Iterator[None]:
        yield


@pytest.fixture
def recorder(monkeypatch: pytest.MonkeyPatch) -> RecordingLogger:
    logger = RecordingLogger()
    monkeypatch.setattr(telemetry, "get_logger", lambda name=None: logger)
    return logger


def test_configure_rejects_config_and_preset_together() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(config=object(), preset="quiet")


def test_unknown_preset_is_rejected() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(preset="verbose")


def test_record_event_uses_structured_pairs(recorder: RecordingLogger) -> None:
    telemetry.record_event("save.saved", data={"grafted": 2})

    assert recorder.lines == [
        ("event::save.saved", [("event", "save.saved"), ("grafted", "2")])
    ]


def test_record_event_falls_back_to_plain_level(recorder: RecordingLogger) -> None:
    telemetry.record_event("load.unmatched_hash", level="warning")

    [(message, pairs)] = recorder.lines
    assert message.startswith("event::load.unmatched_hash ")
    assert pairs is None
    with pytest.raises(ValueError):
        telemetry.record_event("x", level="trace")


def test_span_logs_failure_and_clears_context(recorder: RecordingLogger) -> None:
    with pytest.raises(RuntimeError):
        with telemetry.span(
            "sync::merge", component="sync", metadata={"divergence_id": 4}
        ) as handle:
            assert recorder.context == {"divergence_id": "4"}
            handle.add_metadata("grafted", 3)
            raise RuntimeError("boom")

    message, pairs = recorder.lines[-1]
    assert message == "span::fail"
    assert ("grafted", "3") in pairs
    assert ("component", "sync") in pairs
    assert ("reason", "boom") in pairs
    assert recorder.context == {}
