"""mergepilot's logger: logfire underneath, one config block per sink.

Three sinks exist. The console sink is logfire's own console output,
the file sink is a line-per-record log written by an OpenTelemetry
exporter, and the logfire sink ships everything to logfire.dev. The
module-level ``logger`` is what the rest of the package imports.
"""

from __future__ import annotations

import contextlib
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, field_validator, model_validator

from mergepilot.core.base import BaseConfig

Level = Literal["trace", "debug", "info", "warn", "error", "fatal"]

SEVERITY = {
    "trace": logs_pb2.SEVERITY_NUMBER_TRACE,
    "debug": logs_pb2.SEVERITY_NUMBER_DEBUG,
    "info": logs_pb2.SEVERITY_NUMBER_INFO,
    "warn": logs_pb2.SEVERITY_NUMBER_WARN,
    "error": logs_pb2.SEVERITY_NUMBER_ERROR,
    "fatal": logs_pb2.SEVERITY_NUMBER_FATAL,
}

# Span attributes logfire and OpenTelemetry add on their own
_INTERNAL_PREFIXES = ("logfire.", "code.", "otel.", "telemetry.")

_current_logger: Logger | None = None


class _LoggerProxy:
    """Stands in for the Logger until setup_logger() has run.

    Until then every call is a no-op, so modules can log at import
    time and in tests that never configure logging.
    """

    def __getattr__(self, name):
        if _current_logger is None:
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


def _noop(*args, **kwargs):  # noqa: ARG001
    return None


logger = _LoggerProxy()


def severity_of(span: ReadableSpan) -> int:
    """Severity number logfire stored on a span (spans count as info)."""
    return (span.attributes or {}).get(
        "logfire.level_num", SEVERITY["info"]
    )


def _normalize_level(value):
    if isinstance(value, str):
        value = value.strip().lower()
        return "warn" if value == "warning" else value
    return value


def level_name(severity: int) -> str:
    """Highest level name whose severity is at or below severity."""
    for name in reversed(SEVERITY):
        if severity >= SEVERITY[name]:
            return name
    return "trace"


class _LevelFilter(SpanExporter):
    """Forwards only spans at or above a minimum level."""

    def __init__(self, exporter: SpanExporter, level: str):
        self._exporter = exporter
        self._min = SEVERITY[level]

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        kept = [span for span in spans if severity_of(span) >= self._min]
        if not kept:
            return SpanExportResult.SUCCESS
        return self._exporter.export(kept)

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


class Sink(BaseConfig):
    """Common settings of every sink."""

    enabled: bool = Field(default=True, description="Enable this sink")
    level: Level | None = Field(
        default=None,
        description="Minimum level; None inherits Logger.level",
    )

    _processor: Any = PrivateAttr(default=None)

    @field_validator("level", mode="before")
    @classmethod
    def _check_level(cls, value):
        return _normalize_level(value)

    def create_processor(self, log_root: Path):
        """Span processor feeding this sink, or None if logfire owns it."""
        return None

    def close(self):
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """logfire's console output, on stderr."""

    colors: Literal["auto", "always", "never"] = Field(
        default="auto",
        description="Color mode: auto, always, never",
    )


class FileSink(Sink):
    """Plain text log file, one record per line.

    Structured fields passed to a logging call follow the message as
    key=value pairs. Continuation lines of multi-line messages (prompts
    and replies at trace level) are indented so every record still
    starts at column zero.
    """

    enabled: bool = Field(default=False, description="Enable file logging")
    path: str = Field(
        default="{log_root}/mergepilot.log",
        description="Log file path; {log_root} is substituted",
    )
    line_format: str = Field(
        default="{timestamp:%Y-%m-%d %H:%M:%S} {level:<5} {message}",
        description="Record prefix; fields: timestamp, level, message",
    )

    _file: Any = PrivateAttr(default=None)

    def render(self, span: ReadableSpan) -> str:
        attrs = span.attributes or {}
        line = self.line_format.format(
            timestamp=datetime.fromtimestamp(span.start_time / 1e9, tz=UTC),
            level=level_name(severity_of(span)),
            message=attrs.get("logfire.msg", span.name),
        )

        fields = sorted(
            (key, value) for key, value in attrs.items()
            if not key.startswith(_INTERNAL_PREFIXES)
        )
        if fields:
            line += " | " + " ".join(f"{k}={v!r}" for k, v in fields)

        return line.replace("\n", "\n    ") + "\n"

    def create_processor(self, log_root: Path):
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
        )

        log_path = Path(self.path.format(log_root=log_root))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # Line buffered; closed in close()
        self._file = open(  # noqa: SIM115
            log_path, "a", buffering=1, encoding="utf-8"
        )

        exporter = ConsoleSpanExporter(out=self._file, formatter=self.render)
        return BatchSpanProcessor(_LevelFilter(exporter, self.level))

    def close(self):
        """Flush pending records, then close the file."""
        super().close()
        if self._file and not self._file.closed:
            with contextlib.suppress(OSError):
                self._file.close()


class LogfireSink(Sink):
    """Telemetry shipped to logfire.dev."""

    enabled: bool = Field(default=False, description="Send to logfire.dev")
    token: str | None = Field(
        default=None,
        description="Write token (or set LOGFIRE_TOKEN)",
    )


class Logger(BaseConfig):
    """The logger block of the configuration, and the live logger.

    Closing it closes every sink through the BaseCloseable cascade.
    """

    level: Level = Field(
        default="info",
        description="Level for sinks that do not set their own",
    )
    console: ConsoleSink = Field(default_factory=ConsoleSink)
    file: FileSink = Field(default_factory=FileSink)
    logfire: LogfireSink = Field(default_factory=LogfireSink)

    @field_validator("level", mode="before")
    @classmethod
    def _check_level(cls, value):
        return _normalize_level(value)

    @model_validator(mode="after")
    def _inherit_level(self) -> Logger:
        for sink in (self.console, self.file):
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path):
        """Open the enabled sinks and configure logfire."""
        import logfire

        processors = []
        for sink in (self.console, self.file, self.logfire):
            if sink.enabled:
                sink._processor = sink.create_processor(log_root)
                if sink._processor:
                    processors.append(sink._processor)

        console = False
        if self.console.enabled:
            console = logfire.ConsoleOptions(
                min_log_level=self.console.level,
                colors=self.console.colors,
                include_timestamps=False,
            )

        logfire.configure(
            service_name="mergepilot",
            send_to_logfire=self.logfire.enabled,
            token=self.logfire.token if self.logfire.enabled else None,
            console=console,
            additional_span_processors=processors or None,
        )
        logfire.instrument_pydantic_ai()

    def trace(self, msg: str, **kwargs):
        import logfire
        logfire.trace(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        import logfire
        logfire.debug(msg, **kwargs)

    def info(self, msg: str, **kwargs):
        import logfire
        logfire.info(msg, **kwargs)

    def warn(self, msg: str, **kwargs):
        import logfire
        logfire.warn(msg, **kwargs)

    warning = warn

    def error(self, msg: str, **kwargs):
        import logfire
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Span context manager, e.g. one per resolved file."""
        import logfire
        return logfire.span(msg, **kwargs)


def setup_logger(
    log_root: Path,
    level: str = "info",
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
    logfire: LogfireSink | None = None,
) -> Logger:
    """Replace the global logger, closing the previous one.

    Config calls this once it has loaded; tests call it directly.
    """
    global _current_logger

    if _current_logger is not None:
        _current_logger.close()

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
        logfire=logfire or LogfireSink(),
    )
    _current_logger.setup(log_root)
    return _current_logger
