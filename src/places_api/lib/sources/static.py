"""List-backed and file-backed record accessors."""

import asyncio
import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from loguru import logger

from places_api.lib.region import Region
from places_api.lib.sources.records import CommunityRecord, CuratedRecord, OperatorRecord


class StaticCuratedSource:
    """Curated records held in memory."""

    def __init__(self, records: Iterable[CuratedRecord] = ()) -> None:
        self._records = list(records)

    async def list_curated(self, region: Region) -> list[CuratedRecord]:
        return list(self._records)


class StaticOperatorSource:
    """Operator records held in memory, filtered by status on read."""

    def __init__(self, records: Iterable[OperatorRecord] = ()) -> None:
        self._records = list(records)

    async def list_operator(self, status: str) -> list[OperatorRecord]:
        if status == "all":
            return list(self._records)
        return [r for r in self._records if r.status == status]


class StaticCommunitySource:
    """Approved community records held in memory."""

    def __init__(self, records: Iterable[CommunityRecord] = ()) -> None:
        self._records = list(records)

    async def list_approved_community(self) -> list[CommunityRecord]:
        return list(self._records)


def _read_json_array(path: Path) -> list[Mapping[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        return []
    return [row for row in data if isinstance(row, Mapping)]


class _JsonArrayFile:
    """JSON array file re-read on every call so edits show up without a restart."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def rows(self) -> list[Mapping[str, Any]]:
        if not self.path.exists():
            logger.warning(f"Record file not found at {self.path}")
            return []
        return await asyncio.to_thread(_read_json_array, self.path)


class JsonCuratedSource:
    """Curated records read from a JSON array file."""

    def __init__(self, path: str | Path) -> None:
        self._file = _JsonArrayFile(path)

    async def list_curated(self, region: Region) -> list[CuratedRecord]:
        return [CuratedRecord.from_mapping(row) for row in await self._file.rows()]


class JsonOperatorSource:
    """Operator records read from a JSON array file, filtered by status."""

    def __init__(self, path: str | Path) -> None:
        self._file = _JsonArrayFile(path)

    async def list_operator(self, status: str) -> list[OperatorRecord]:
        records = [OperatorRecord.from_mapping(row) for row in await self._file.rows()]
        if status == "all":
            return records
        return [r for r in records if r.status == status]


class JsonCommunitySource:
    """Community records read from a JSON array file.

    Rows carrying a ``status`` other than ``approved`` are skipped.
    """

    def __init__(self, path: str | Path) -> None:
        self._file = _JsonArrayFile(path)

    async def list_approved_community(self) -> list[CommunityRecord]:
        return [
            CommunityRecord.from_mapping(row)
            for row in await self._file.rows()
            if str(row.get("status") or "approved").strip().lower() == "approved"
        ]
