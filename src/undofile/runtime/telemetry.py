"""Structured logging for the undo-file store, backed by telelog.

Events are emitted as ``event::<name>`` lines carrying key/value pairs, and
every load, save and merge runs inside a profiled ``span``.
"""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, cast

import telelog  # type: ignore[import]

from .settings import env, env_flag

tl = cast(Any, telelog)

LOGGER_NAME = "undofile"
PRESET_LOG_FILE = "undofile.log"

# (config method, argument) pairs applied on top of a fresh ``tl.Config``
_PRESETS: Dict[str, Sequence[Tuple[str, Any]]] = {
    "development": (
        ("with_min_level", "DEBUG"),
        ("with_console_output", True),
        ("with_colored_output", True),
        ("with_profiling", True),
    ),
    "production": (
        ("with_min_level", "INFO"),
        ("with_console_output", False),
        ("with_json_format", True),
        ("with_buffering", True),
    ),
    "quiet": (
        ("with_min_level", "ERROR"),
        ("with_console_output", False),
    ),
}

_loggers: Dict[str, Any] = {}
_config: Optional[Any] = None


def _config_from_preset(preset: str) -> Any:
    try:
        options = _PRESETS[preset.lower()]
    except KeyError:
        raise ValueError(f"Unknown preset '{preset}'.") from None
    config = tl.Config()
    for method, argument in options:
        getattr(config, method)(argument)
    if preset.lower() == "production":
        config.with_file_output(env("LOG_FILE") or PRESET_LOG_FILE)
    return config


def _config_from_env() -> Any:
    """Build the configuration described by the ``UNDOFILE_LOG_*`` variables."""

    config = tl.Config()
    config.with_min_level((env("LOG_LEVEL") or "INFO").upper())
    console = not env_flag("DISABLE_CONSOLE", False)
    config.with_console_output(console)
    if console:
        config.with_colored_output(not env_flag("NO_COLOR", False))
    if env_flag("LOG_JSON", False):
        config.with_json_format(True)
    log_file = env("LOG_FILE")
    if log_file:
        config.with_file_output(log_file)
    return config


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Swap the active telelog configuration.

    ``config`` adopts an explicit ``tl.Config``; ``preset`` picks one of
    ``development``, ``production`` or ``quiet``. With neither, the
    environment decides. Cached loggers are rebuilt on next use.
    """

    global _config
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")
    if preset:
        config = _config_from_preset(preset)
    _config = config if config is not None else _config_from_env()
    _loggers.clear()


def get_logger(name: Optional[str] = None) -> Any:
    name = name or LOGGER_NAME
    logger = _loggers.get(name)
    if logger is None:
        if _config is None:
            configure()
        logger = _loggers[name] = tl.Logger.with_config(name, _config)
    return logger


def _text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _emit(logger: Any, level: str, message: str, data: Dict[str, Any]) -> None:
    """Log ``message`` with ``data`` as pairs, or inline when unsupported."""

    level = level.lower()
    structured = getattr(logger, f"{level}_with", None)
    if structured is not None:
        structured(message, [(key, _text(value)) for key, value in data.items()])
        return
    plain = getattr(logger, level, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {data}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    _emit(
        get_logger(logger_name),
        level,
        f"event::{name}",
        {"event": name, **(data or {})},
    )


@dataclass
class SpanHandle:
    """Lets the body of a ``span`` attach metadata to its failure line."""

    logger: Any
    name: str
    component: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def fail(self, reason: str) -> None:
        data: Dict[str, Any] = {"span": self.name, **self.metadata}
        if self.component:
            data["component"] = self.component
        data["reason"] = reason
        _emit(self.logger, "error", "span::fail", data)


def _pop_context(logger: Any, keys: List[str]) -> None:
    for key in keys:
        logger.remove_context(key)


@contextmanager
def span(
    name: str,
    *,
    component: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> Iterator[SpanHandle]:
    """Profile the block as ``name``, tracked under ``component`` if given.

    ``metadata`` is pushed as logger context for the duration of the block.
    An exception escaping the block is logged as ``span::fail`` and re-raised.
    """

    logger = get_logger(logger_name)
    context = {key: _text(value) for key, value in (metadata or {}).items()}
    handle = SpanHandle(logger, name, component, dict(context))
    pushed: List[str] = []
    with ExitStack() as stack:
        for key, value in context.items():
            logger.add_context(key, value)
            pushed.append(key)
        stack.callback(_pop_context, logger, pushed)
        if component:
            stack.enter_context(logger.track_component(component))
        stack.enter_context(logger.profile(name))
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc))
            raise


__all__ = ["SpanHandle", "configure", "get_logger", "record_event", "span"]
