"""File-based snapshot storage: ``latest.json`` plus dated archives."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from .models import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "team-velocity"
LATEST_NAME = "latest.json"


class SnapshotStore:
    """Keeps the most recent snapshot and one archive per collection day."""

    def __init__(self, data_dir: Path = DEFAULT_DATA_DIR) -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @staticmethod
    def archive_name(moment: datetime) -> str:
        return f"metrics-{moment.strftime('%Y-%m-%d')}.json"

    def load_latest(self) -> Snapshot | None:
        """Return the latest snapshot, or None when missing or unreadable."""
        path = self._data_dir / LATEST_NAME
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None
        return Snapshot.from_dict(data)

    def save(self, snapshot: Snapshot, now: datetime | None = None) -> Path:
        """Write the snapshot as the latest and as today's archive."""
        now = now or datetime.now(timezone.utc)
        content = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)
        archive = self._data_dir / self.archive_name(now)
        archive.write_text(content, encoding="utf-8")
        (self._data_dir / LATEST_NAME).write_text(content, encoding="utf-8")
        return archive

    def list_archives(self) -> list[Path]:
        return sorted(self._data_dir.glob("metrics-*.json"))
