"""Provider HTTP debug logging."""

from launcher_auth.telemetry.debug.http_logger import HttpDebugLogger

__all__ = ["HttpDebugLogger"]
