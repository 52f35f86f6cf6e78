"""Diagnostic snapshots for offline inspection of extraction failures."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass
class DiagnosticEvent:
    """Page state captured when extraction came up empty."""

    kind: str
    url: str
    title: str = ""
    markup: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    details: dict[str, Any] = field(default_factory=dict)


class DiagnosticsSink(Protocol):
    def emit(self, event: DiagnosticEvent) -> None: ...


class LoggingDiagnostics:
    """Logs events and, when ``debug_dir`` is set, dumps the markup to disk."""

    def __init__(self, debug_dir: str | Path | None = None) -> None:
        self.debug_dir = Path(debug_dir) if debug_dir else None

    def emit(self, event: DiagnosticEvent) -> None:
        logger.error(
            "Diagnostic [%s] url=%s title=%r markup=%d chars",
            event.kind,
            event.url,
            event.title,
            len(event.markup),
        )
        if self.debug_dir is None:
            return

        stamp = event.created_at.strftime("%Y%m%d_%H%M%S")
        path = self.debug_dir / f"{event.kind}_{stamp}.html"
        try:
            self.debug_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(event.markup, encoding="utf-8")
            logger.info("Page markup saved to %s", path)
        except OSError as e:
            logger.warning("Could not write diagnostic dump %s: %s", path, e)


class MemoryDiagnostics:
    """Collects events in memory."""

    def __init__(self) -> None:
        self.events: list[DiagnosticEvent] = []

    def emit(self, event: DiagnosticEvent) -> None:
        self.events.append(event)
