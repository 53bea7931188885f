import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

_CONSOLE_FORMAT = "<level>{level:<8}</level> <cyan>{name}</cyan> - <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level:<8} [{name}.{function}:{line}] {message}"


@runtime_checkable
class LogSink(Protocol):
    def attach(self, level: str) -> int: ...

    def label(self, level: str) -> str: ...


@dataclass
class StderrSink:
    colorize: bool = True

    def attach(self, level: str) -> int:
        return logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, colorize=self.colorize)

    def label(self, level: str) -> str:
        return f"stderr at {level}"


@dataclass
class RotatingFileSink:
    """Plain-text log file, or JSON lines when ``json`` is set."""

    path: str = "agentic_chat.log"
    rotation: str = "10 MB"
    retention: int = 3
    json: bool = False

    def attach(self, level: str) -> int:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        return logger.add(
            self.path,
            level=level,
            format=_FILE_FORMAT,
            rotation=self.rotation,
            retention=self.retention,
            serialize=self.json,
        )

    def label(self, level: str) -> str:
        kind = "json" if self.json else "text"
        return f"{self.path} at {level} ({kind}, rotates at {self.rotation})"


_SINKS: dict[str, type] = {
    "console": StderrSink,
    "file": RotatingFileSink,
}

# WARNING on the console keeps log output from interleaving with the chat prompt.
DEFAULT_LOG_CONSUMERS: list[dict[str, Any]] = [
    {"type": "console", "level": "WARNING"},
    {"type": "file"},
]


def build_sink(entry: dict[str, Any]) -> LogSink | None:
    sink_cls = _SINKS.get(str(entry.get("type", "")).lower())
    if sink_cls is None:
        return None
    return sink_cls(**{k: v for k, v in entry.items() if k not in ("type", "level")})


def setup_logging(level: str = "INFO", consumers: list[dict[str, Any]] | None = None) -> list[str]:
    """Route loguru to the configured sinks.

    Each entry of ``consumers`` is a ``LogConsumers`` item from config.json:
    ``{"type": "console" | "file", "level": ..., **sink options}``. Returns a
    human-readable label per attached sink for the startup banner.
    """
    logger.remove()

    labels: list[str] = []
    for entry in DEFAULT_LOG_CONSUMERS if consumers is None else consumers:
        sink = build_sink(entry)
        if sink is None:
            logger.warning(f"Ignoring log consumer with unknown type: {entry.get('type')!r}")
            continue
        sink_level = entry.get("level", level)
        sink.attach(sink_level)
        labels.append(sink.label(sink_level))
    return labels
