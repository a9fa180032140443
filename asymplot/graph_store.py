"""Local JSON store for saved graphs.

A saved graph is an opaque ``{equation, date}`` record plus an id and a
creation timestamp. The store keeps every record in one JSON list on disk,
reads it on each call and rewrites it on each change; it has no remote
backend and no sync.
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import uuid
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, List, Optional, Union

__all__ = ["GraphRecord", "GraphStore", "GraphStoreError", "format_date"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

DateLike = Union[str, _dt.date, _dt.datetime]


class GraphStoreError(RuntimeError):
    """Raised when the store file cannot be read or holds malformed data."""


def format_date(value: DateLike) -> str:
    """Return ``value`` as ``YYYY-MM-DD``.

    Strings must already be ISO dates (a time part is dropped).
    """
    if isinstance(value, _dt.datetime):
        return value.date().isoformat()
    if isinstance(value, _dt.date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        try:
            return _dt.date.fromisoformat(text[:10]).isoformat()
        except ValueError as e:
            raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD") from e
    raise TypeError(f"Expected a date or ISO date string, got {type(value).__name__}")


@dataclass(frozen=True)
class GraphRecord:
    """One saved graph."""

    id: str
    equation: str
    date: str
    created_at: str

    @classmethod
    def from_dict(cls, data: Any) -> "GraphRecord":
        if not isinstance(data, dict):
            raise GraphStoreError(f"Graph record must be an object, got {type(data).__name__}")
        try:
            return cls(
                id=str(data["id"]),
                equation=str(data["equation"]),
                date=format_date(data["date"]),
                created_at=str(data.get("created_at", "")),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise GraphStoreError(f"Malformed graph record {data!r}: {e}") from e

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class GraphStore:
    """JSON-file backed list of :class:`GraphRecord`.

    Parameters
    ----------
    path : str or pathlib.Path
        Store file. A missing file is an empty store; it is created on the
        first write.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def all(self) -> List[GraphRecord]:
        """Return every saved graph in insertion order."""
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as e:
            raise GraphStoreError(f"Could not read graph store {self._path}: {e}") from e
        if not isinstance(raw, list):
            raise GraphStoreError(f"Graph store {self._path} must hold a JSON list")
        return [GraphRecord.from_dict(item) for item in raw]

    def _write(self, records: List[GraphRecord]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([r.to_dict() for r in records], indent=2)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(self._path)

    def add(self, equation: str, date: DateLike) -> GraphRecord:
        """Save a new graph and return it with its generated id."""
        record = GraphRecord(
            id=str(uuid.uuid4()),
            equation=str(equation),
            date=format_date(date),
            created_at=_dt.datetime.now(_dt.timezone.utc).isoformat(),
        )
        records = self.all()
        records.append(record)
        self._write(records)
        logger.debug("saved graph %s for %s", record.id, record.date)
        return record

    def get(self, graph_id: str) -> Optional[GraphRecord]:
        for record in self.all():
            if record.id == graph_id:
                return record
        return None

    def for_date(self, date: DateLike) -> List[GraphRecord]:
        """Return the graphs saved for ``date``."""
        key = format_date(date)
        return [r for r in self.all() if r.date == key]

    def update(
        self,
        graph_id: str,
        *,
        equation: Optional[str] = None,
        date: Optional[DateLike] = None,
    ) -> GraphRecord:
        """Change a saved graph's equation and/or date.

        Raises
        ------
        KeyError
            If no graph has ``graph_id``.
        """
        records = self.all()
        for idx, record in enumerate(records):
            if record.id != graph_id:
                continue
            changes: dict[str, str] = {}
            if equation is not None:
                changes["equation"] = str(equation)
            if date is not None:
                changes["date"] = format_date(date)
            updated = replace(record, **changes)
            records[idx] = updated
            self._write(records)
            return updated
        raise KeyError(f"Unknown graph id: {graph_id}")

    def delete(self, graph_id: str) -> bool:
        """Remove a saved graph; return False when nothing matched."""
        records = self.all()
        kept = [r for r in records if r.id != graph_id]
        if len(kept) == len(records):
            return False
        self._write(kept)
        logger.debug("deleted graph %s", graph_id)
        return True
