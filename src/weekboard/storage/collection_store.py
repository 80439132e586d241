# src/weekboard/storage/collection_store.py

"""
Typed access to the two persisted collections ("tasks" and "weeks").

Each collection is stored under its own key as a JSON list. Reads are
forgiving: a missing key, a store error or undecodable JSON yields an empty
list (logged, not raised). Single malformed records are skipped. Writes always
replace the whole list; failures are raised as StorageWriteError.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from ..core.ports import KeyValueStore
from ..errors import StorageWriteError
from ..tasks.task_models import Task, Week

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
WEEKS_KEY = "weeks"

T = TypeVar("T")


class CollectionStore:
    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    async def _read_list(self, key: str) -> list[Any]:
        try:
            raw = await self._kv.get(key)
        except Exception:
            logger.warning("Failed to read '%s'; using an empty collection.", key, exc_info=True)
            return []
        if raw is None or raw == "":
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored '%s' is not valid JSON; using an empty collection.", key)
            return []
        if not isinstance(data, list):
            logger.warning("Stored '%s' is not a list; using an empty collection.", key)
            return []
        return data

    @staticmethod
    def _decode_items(key: str, items: Iterable[Any], factory: Callable[[dict[str, Any]], T]) -> list[T]:
        out: list[T] = []
        for raw in items:
            if not isinstance(raw, dict):
                logger.warning("Skipping non-object entry in '%s'.", key)
                continue
            try:
                out.append(factory(raw))
            except ValueError as e:
                logger.warning("Skipping malformed entry in '%s': %s", key, e)
        return out

    async def _write_list(self, key: str, items: list[dict[str, Any]]) -> None:
        try:
            payload = json.dumps(items, ensure_ascii=False)
            await self._kv.set(key, payload)
        except Exception as e:
            logger.error("Failed to save '%s' (%d items).", key, len(items), exc_info=True)
            raise StorageWriteError(key, e) from e
        logger.debug("Saved '%s' (%d items).", key, len(items))

    # ---- public API ----

    async def load_tasks(self) -> list[Task]:
        return self._decode_items(TASKS_KEY, await self._read_list(TASKS_KEY), Task.from_dict)

    async def save_tasks(self, tasks: Iterable[Task]) -> None:
        await self._write_list(TASKS_KEY, [t.to_dict() for t in tasks])

    async def load_weeks(self) -> list[Week]:
        return self._decode_items(WEEKS_KEY, await self._read_list(WEEKS_KEY), Week.from_dict)

    async def save_weeks(self, weeks: Iterable[Week]) -> None:
        await self._write_list(WEEKS_KEY, [w.to_dict() for w in weeks])
