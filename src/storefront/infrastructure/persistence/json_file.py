"""Shared plumbing for the JSON-file document store.

One JSON document per collection.  Reads and writes run in a worker
thread so the event loop never blocks on disk, and writes go through a
temporary file plus ``os.replace`` so a crash never leaves half a file.

Each collection owns one ``asyncio.Lock``; every read-modify-write cycle
of a repository goes through ``modify``, which runs it under that lock.
That is what makes a conditional update a single atomic operation for
all tasks in this process.

A worker thread cannot be cancelled, so a write that was started always
lands.  ``modify`` therefore shields the whole cycle: a caller that times
out or is cancelled stops waiting, but the lock stays held until the
file is replaced, and no other cycle can read the document in between.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class JsonCollection:

    def __init__(self, file_path: Path, empty: Any) -> None:
        self._file_path = file_path
        self._empty = empty
        self._lock = asyncio.Lock()
        # Shielded cycles whose caller may have stopped waiting.
        self._in_flight: set[asyncio.Task[Any]] = set()
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._file_path

    async def load(self) -> Any:
        return await asyncio.to_thread(self._load_raw)

    async def modify(self, change: Callable[[Any], tuple[bool, T]]) -> T:
        """Run one locked read-modify-write cycle to completion.

        *change* mutates the loaded document in place and returns
        ``(changed, result)``; the document is written back only when
        ``changed`` is true, and ``result`` is returned to the caller.
        """
        task = asyncio.ensure_future(self._modify(change))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return await asyncio.shield(task)

    async def _modify(self, change: Callable[[Any], tuple[bool, T]]) -> T:
        async with self._lock:
            data = await self.load()
            changed, result = change(data)
            if changed:
                await asyncio.to_thread(self._persist_raw, data)
            return result

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> Any:
        text = self._file_path.read_text(encoding="utf-8")
        return json.loads(text) if text.strip() else self._fresh()

    def _persist_raw(self, data: Any) -> None:
        tmp = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        os.replace(tmp, self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(self._fresh()), encoding="utf-8")

    def _fresh(self) -> Any:
        return json.loads(json.dumps(self._empty))
