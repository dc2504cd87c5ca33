"""Logging setup for the proxy server and CLI.

Every entry point calls configure_logging() before doing any work. The
server logs to the console through Rich and, unless disabled, to daily
JSONL files; one-shot CLI commands log warnings and errors to stderr.

Levels:
- DEBUG: temp file housekeeping, config resolution, raw remote payloads
- INFO: remote calls and their duration, proxied fetches
- WARNING: rejected client input, quota refusals
- ERROR: remote failures, proxy failures, unexpected crashes

The Hugging Face token travels in request headers and in the remote
client's constructor, so file entries are passed through SecretRedactor.
Structured fields given via ``extra={"remote.api_name": ...}`` are kept
as top-level keys of the JSONL entry.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, TextIO

LOG_LEVEL_ENV_VAR = "VISIONPROXY_LOG_LEVEL"
LOG_RETENTION_DAYS = 7
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

TOKEN_PATTERNS: list[str] = [
    # Hugging Face user and org access tokens
    r"\b(hf_[A-Za-z0-9]{20,})\b",
    r"\b(api_org_[A-Za-z0-9]{20,})\b",
    # HF_TOKEN=... / HUGGING_FACE_HUB_TOKEN: ...
    r"\b[A-Z0-9_]+(?:KEY|TOKEN|SECRET|PASSWORD)\s*[=:]\s*([^\s\"']{8,})",
    # Authorization headers
    r"\bBearer\s+([A-Za-z0-9._\-+=]{20,})\b",
]

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "component"}


@dataclass
class SecretRedactor:
    """Masks access tokens in log text.

    Matches keep their first and last four characters so a leaked token can
    still be told apart from others. Exact values handed to add_secret() are
    masked too, whatever their shape.
    """

    patterns: list[re.Pattern[str]] = field(default_factory=list)
    secrets: set[str] = field(default_factory=set)
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.patterns:
            self.patterns = [re.compile(p, re.IGNORECASE) for p in TOKEN_PATTERNS]

    def add_secret(self, value: str | None) -> None:
        if value:
            self.secrets.add(value)

    def redact(self, text: str) -> str:
        if not self.enabled or not text:
            return text
        for secret in self.secrets:
            if secret in text:
                text = text.replace(secret, _mask(secret))
        for pattern in self.patterns:
            text = pattern.sub(self._mask_match, text)
        return text

    def _mask_match(self, match: re.Match[str]) -> str:
        full = match.group(0)
        token = match.group(1) if match.lastindex else full
        if "..." in token:
            return full
        return full.replace(token, _mask(token))


def _mask(token: str) -> str:
    if len(token) < 12:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


_redactor = SecretRedactor()


def register_secret(value: str | None) -> None:
    """Mask this exact value in every file log entry from now on."""
    _redactor.add_secret(value)


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = LOG_RETENTION_DAYS,
    suffix: str = ".jsonl",
) -> int:
    """Delete log files older than the retention period.

    Returns:
        Number of files deleted.
    """
    if not logs_dir.exists():
        return 0

    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    deleted = 0
    for entry in logs_dir.iterdir():
        if not entry.is_file() or not entry.name.endswith(suffix):
            continue
        try:
            if datetime.fromtimestamp(entry.stat().st_mtime, UTC) < cutoff:
                entry.unlink()
                deleted += 1
        except OSError:
            # Raced with another process pruning the same directory
            continue
    return deleted


def _component(name: str) -> str:
    parts = name.split(".")
    if len(parts) >= 2 and parts[0] == "visionproxy":
        return parts[1]
    return parts[0]


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Structured fields attached to a record through ``extra``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JSONLHandler(logging.Handler):
    """Appends one JSON object per record to logs/YYYY-MM-DD.jsonl.

    A new file is opened when the UTC date changes, and files past the
    retention period are pruned at that point.
    """

    def __init__(self, logs_dir: Path, retention_days: int = LOG_RETENTION_DAYS):
        super().__init__()
        self._logs_dir = logs_dir
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        self._retention_days = retention_days
        self._current_date: str | None = None
        self._file: TextIO | None = None

    def _log_file(self) -> TextIO:
        today = datetime.now(UTC).strftime("%Y-%m-%d")
        if self._file is None or self._current_date != today:
            if self._file:
                self._file.close()
            self._current_date = today
            self._file = (self._logs_dir / f"{today}.jsonl").open(
                "a", encoding="utf-8"
            )
            prune_old_logs(self._logs_dir, self._retention_days)
        return self._file

    def build_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "component": _component(record.name),
            "logger": record.name,
            "message": _redactor.redact(record.getMessage()),
        }
        for key, value in record_fields(record).items():
            if isinstance(value, str):
                value = _redactor.redact(value)
            entry.setdefault(key, value)
        if record.exc_info:
            formatter = self.formatter or logging.Formatter()
            entry["exception"] = _redactor.redact(
                formatter.formatException(record.exc_info)
            )
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.build_entry(record), default=str)
            log_file = self._log_file()
            log_file.write(line + "\n")
            log_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None
        super().close()


class ComponentFormatter(logging.Formatter):
    """Adds %(component)s: the first package below visionproxy.

    visionproxy.server.routes.analyze -> server
    """

    def format(self, record: logging.LogRecord) -> str:
        record.component = _component(record.name)
        return super().format(record)


# Chatty at INFO: per-request access lines, HTTP client traffic,
# gradio_client's queue polling and multipart parsing.
NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "uvicorn.access",
    "gradio_client",
    "multipart",
]


def _resolve_level(level: str | None) -> int:
    name = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or "INFO").upper()
    if name not in LEVELS:
        name = "INFO"
    return getattr(logging, name)


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
) -> None:
    """Install handlers on the root logger, replacing any existing ones.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (case-insensitive). Falls back to
            $VISIONPROXY_LOG_LEVEL, then INFO.
        use_rich: Console output through Rich, and uvicorn routed through the
            same handlers. Used by the server.
        log_to_file: Also write JSONL entries under $VISIONPROXY_HOME/logs.
    """
    from visionproxy.config.paths import get_logs_path

    log_level = _resolve_level(level)
    handlers: list[logging.Handler] = []

    if use_rich:
        from rich.logging import RichHandler

        console: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console = logging.StreamHandler()
        console.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    handlers.append(console)

    if log_to_file:
        file_handler = JSONLHandler(get_logs_path())
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if use_rich:
        for name in ("uvicorn", "uvicorn.error"):
            uv_logger = logging.getLogger(name)
            uv_logger.handlers = handlers
            uv_logger.propagate = False
