"""
Operational alerts: a push notification over ntfy plus an ``error_logs`` row.

Both legs are best effort. They run as background tasks, are never retried
and never raise into the code that reported the problem.
"""
from __future__ import annotations

import asyncio
import os
import sqlite3
from typing import Any, Dict, Iterable, Optional, Set

import aiohttp

import db.crud as crud
from db.models import LogLevel
from utils.logger import get_logger

_logger = get_logger(__name__)

NTFY_SERVER = os.getenv("NTFY_SERVER", "https://ntfy.sh").rstrip("/")
NTFY_TOPIC = os.getenv("NTFY_TOPIC", "bread-admin-logs")
NTFY_ENABLED = os.getenv("NTFY_ENABLED", "1").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}
NTFY_TIMEOUT = float(os.getenv("NTFY_TIMEOUT", "5"))

PRIORITY_MAP: Dict[str, str] = {
    "error": "5",
    "warn": "4",
    "info": "3",
}

TAG_MAP: Dict[str, str] = {
    "error": "rotating_light",
    "warn": "warning",
    "info": "information_source",
}


def build_headers(level: LogLevel, title: str, tags: Iterable[str] = ()) -> Dict[str, str]:
    return {
        "Title": f"[{level.upper()}] {title}",
        "Priority": PRIORITY_MAP[level],
        "Tags": ",".join([TAG_MAP[level], *tags]),
    }


class Notifier:
    def __init__(
        self,
        topic: str = NTFY_TOPIC,
        server: str = NTFY_SERVER,
        enabled: bool = NTFY_ENABLED,
        timeout: float = NTFY_TIMEOUT,
        source: str = "client",
    ) -> None:
        self.url = f"{server}/{topic}"
        self.enabled = enabled
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self.source = source
        self._tasks: Set[asyncio.Task] = set()

    async def send(
        self, level: LogLevel, title: str, message: str, tags: Iterable[str] = ()
    ) -> bool:
        """POST one alert to the topic. Returns False on any failure."""
        if not self.enabled:
            return False
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(
                    self.url,
                    data=message.encode("utf-8"),
                    headers=build_headers(level, title, tags),
                ) as resp:
                    if resp.status >= 400:
                        _logger.debug(f"ntfy answered {resp.status} for '{title}'")
                        return False
                    return True
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            _logger.debug(f"Alert delivery failed: {e!r}")
            return False

    async def record(
        self,
        level: LogLevel,
        title: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Insert the alert into ``error_logs``. Returns False on any failure."""
        try:
            await crud.insert_error_log(level, title, message, self.source, metadata)
            return True
        except (sqlite3.Error, OSError) as e:
            _logger.debug(f"Could not write error log: {e!r}")
            return False

    async def _deliver(
        self,
        level: LogLevel,
        title: str,
        message: str,
        tags: Iterable[str],
        metadata: Optional[Dict[str, Any]],
    ) -> None:
        await asyncio.gather(
            self.record(level, title, message, metadata),
            self.send(level, title, message, tags),
        )

    def report(
        self,
        level: LogLevel,
        title: str,
        message: str,
        tags: Iterable[str] = (),
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[asyncio.Task]:
        """
        Log locally and schedule delivery in the background.

        Returns the scheduled task, or None when there is no running event
        loop (the local log line is still written).
        """
        log = {"error": _logger.error, "warn": _logger.warning}.get(level, _logger.info)
        log(f"{title}: {message}")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        task = loop.create_task(self._deliver(level, title, message, tuple(tags), metadata))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def error(self, title: str, message: str, **kwargs) -> Optional[asyncio.Task]:
        return self.report("error", title, message, **kwargs)

    def warn(self, title: str, message: str, **kwargs) -> Optional[asyncio.Task]:
        return self.report("warn", title, message, **kwargs)

    def info(self, title: str, message: str, **kwargs) -> Optional[asyncio.Task]:
        return self.report("info", title, message, **kwargs)

    async def drain(self) -> None:
        """Wait for alerts still in flight, e.g. before the app exits."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


notifier = Notifier()
