from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from freight_hub.generators import freight, vehicle_space


log = logging.getLogger(__name__)

CSV_FILENAMES = {
    "freight": "freight_offers.csv",
    "vehicle": "vehicle_offers.csv",
}

REQUIRED_COLUMNS = {
    "freight": freight.REQUIRED_COLUMNS,
    "vehicle": vehicle_space.REQUIRED_COLUMNS,
}

BACKUP_MARKER = "_backup_"


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def format_kb(size: int) -> str:
    return f"{size / 1024:.2f} KB"


@dataclass(frozen=True)
class StoredFile:
    name: str
    type: str
    size: int
    modified: str
    rows: int = 0
    columns: int = 0
    headers: tuple[str, ...] = ()

    @property
    def size_formatted(self) -> str:
        return format_kb(self.size)


def _type_of(filename: str) -> str | None:
    """The canonical type a backup belongs to, from its `<stem>_backup_` prefix."""
    for csv_type, canonical in CSV_FILENAMES.items():
        if filename.startswith(Path(canonical).stem + BACKUP_MARKER):
            return csv_type
    return None


class CsvDataStore:
    """
    The two canonical generator inputs plus their timestamped backups, all kept
    flat in one directory. Invalid input raises ValueError; absent files raise
    FileNotFoundError.
    """

    def __init__(self, base_dir: str | Path, *, max_bytes: int = 10 * 1024 * 1024):
        self.base = Path(base_dir)
        self.base.mkdir(parents=True, exist_ok=True)
        self.max_bytes = max_bytes

    @staticmethod
    def check_type(csv_type: str) -> str:
        if csv_type not in CSV_FILENAMES:
            raise ValueError('Invalid type. Use "freight" or "vehicle"')
        return csv_type

    def path_for(self, csv_type: str) -> Path:
        return self.base / CSV_FILENAMES[self.check_type(csv_type)]

    def _backup(self, path: Path) -> Path:
        stamp = datetime.now(timezone.utc).isoformat().replace(":", "-").replace(".", "-")
        target = self.base / f"{path.stem}{BACKUP_MARKER}{stamp}.csv"
        n = 1
        while target.exists():
            target = self.base / f"{path.stem}{BACKUP_MARKER}{stamp}-{n}.csv"
            n += 1
        shutil.copyfile(path, target)
        log.info("csv: backup created %s", target.name)
        return target

    def validate(self, csv_type: str, *, filename: str, content_type: str | None, data: bytes) -> str:
        if not (filename.lower().endswith(".csv") or content_type == "text/csv"):
            raise ValueError("Only CSV files are allowed")
        if len(data) > self.max_bytes:
            raise ValueError(f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB")
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValueError("CSV file must be UTF-8 encoded") from e

        lines = [line for line in text.splitlines() if line.strip()]
        if len(lines) < 2:
            raise ValueError("CSV file must contain at least a header and one data row")

        header = lines[0].lower()
        missing = [col for col in REQUIRED_COLUMNS[csv_type] if col.lower() not in header]
        if missing:
            raise ValueError(f"Missing required columns: {', '.join(missing)}")
        return text

    def upload(self, csv_type: str, *, filename: str, content_type: str | None, data: bytes) -> StoredFile:
        path = self.path_for(csv_type)
        self.validate(csv_type, filename=filename, content_type=content_type, data=data)

        if path.exists():
            self._backup(path)
        path.write_bytes(data)
        log.info("csv: %s replaced with upload %s (%d bytes)", path.name, filename, len(data))
        return self.info(csv_type)

    def info(self, csv_type: str) -> StoredFile:
        path = self.path_for(csv_type)
        if not path.exists():
            raise FileNotFoundError(f"{csv_type.capitalize()} CSV file not found")

        stat = path.stat()
        lines = [line for line in path.read_text(encoding="utf-8-sig").splitlines() if line.strip()]
        header = lines[0].split(",") if lines else []
        return StoredFile(
            name=path.name,
            type=csv_type,
            size=stat.st_size,
            modified=_iso(stat.st_mtime),
            rows=max(0, len(lines) - 1),
            columns=len(header),
            headers=tuple(h.replace('"', "").strip() for h in header[:10]),
        )

    def list_backups(self) -> list[StoredFile]:
        found = []
        for path in self.base.glob(f"*{BACKUP_MARKER}*.csv"):
            if _type_of(path.name) is None:
                continue
            stat = path.stat()
            found.append((stat.st_mtime, path.name, stat.st_size))
        found.sort(reverse=True)
        return [
            StoredFile(name=name, type=_type_of(name), size=size, modified=_iso(mtime))
            for mtime, name, size in found
        ]

    def restore(self, filename: str) -> tuple[str, str]:
        """Copy a backup over its canonical file; returns (type, canonical filename)."""
        csv_type = _type_of(filename or "")
        if (
            csv_type is None
            or not filename.endswith(".csv")
            or Path(filename).name != filename
            or "\\" in filename
        ):
            raise ValueError("Invalid backup filename")

        source = self.base / filename
        if not source.is_file():
            raise FileNotFoundError("Backup file not found")

        target = self.path_for(csv_type)
        if target.exists():
            self._backup(target)
        shutil.copyfile(source, target)
        log.info("csv: restored %s from %s", target.name, filename)
        return csv_type, target.name
