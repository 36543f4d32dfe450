"""Provider HTTP logging (request/response pairs).

Every provider call logs through HttpDebugLogger:
- INFO entries (full request/response pairs) only when HTTP debug is enabled
- WARNING entries (non-2xx responses, missing fields) always

Authorization header values are always redacted. Callers never pass token
request bodies; bodies of responses are truncated.

When a log path is given, entries are also written as JSONL
(<log_dir>/debug/http.jsonl) in addition to the system logger.
"""

from __future__ import annotations

__all__ = ["HttpDebugLogger"]

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from launcher_auth.constants import APP_NAME
from launcher_auth.telemetry.system.system_logger import get_system_logger
from launcher_auth.utils.logging.logger_setup import setup_jsonl_logger
from launcher_auth.utils.logging.logging_helpers import redact_headers


class HttpDebugLogger:
    """Structured logger for provider request/response pairs.

    Usage:
        http_log = HttpDebugLogger(enabled=config.logging.http_debug)
        http_log.exchange(
            logging.WARNING,
            "game_session_rejected",
            "Premium HTTP game-session/new response",
            request={"method": "POST", "url": url, "headers": headers},
            response={"status": 403, "body": snippet(text)},
        )
    """

    def __init__(
        self,
        enabled: bool = False,
        log_path: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the HTTP logger.

        Args:
            enabled: Log INFO-level request/response pairs.
            log_path: Optional JSONL file receiving the same entries.
            logger: Logger to write to (defaults to the system logger).
        """
        self._enabled = enabled
        self._logger = logger or get_system_logger()
        self._wire_logger: logging.Logger | None = None
        if log_path is not None:
            try:
                self._wire_logger = setup_jsonl_logger(f"{APP_NAME}.debug.http", log_path, logging.INFO)
            except OSError as e:
                self._logger.warning(
                    {
                        "event": "http_debug_log_unavailable",
                        "message": f"Cannot open HTTP debug log {log_path}: {e}",
                    }
                )

    @property
    def enabled(self) -> bool:
        """Whether INFO-level request/response pairs are logged."""
        return self._enabled

    def exchange(
        self,
        level: int,
        event: str,
        message: str,
        *,
        request: Mapping[str, Any] | None = None,
        response: Mapping[str, Any] | None = None,
    ) -> None:
        """Log one request/response pair.

        Args:
            level: logging level; INFO entries are dropped unless enabled.
            event: Machine-readable event name.
            message: Human-readable summary.
            request: method/url/headers/body of the request.
            response: status/body of the response.
        """
        if level < logging.WARNING and not self._enabled:
            return

        entry: dict[str, Any] = {"event": event, "message": message}
        if request is not None:
            req = dict(request)
            if "headers" in req:
                req["headers"] = redact_headers(req["headers"])
            entry["request"] = req
        if response is not None:
            entry["response"] = dict(response)

        self._logger.log(level, entry)
        if self._wire_logger is not None:
            self._wire_logger.log(level, entry)
