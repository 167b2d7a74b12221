"""Queue backends consumed by the job scheduler."""

from __future__ import annotations

import asyncio
from typing import Protocol


class JobQueueBackend(Protocol):
  """FIFO hand-off between enqueuers and the single worker."""

  async def put(self, job_id: str) -> None: ...

  async def get(self) -> str: ...

  def task_done(self) -> None: ...

  async def join(self) -> None: ...

  def qsize(self) -> int: ...


class InMemoryJobQueue:
  """Process-local queue; contents are lost on restart."""

  def __init__(self) -> None:
    self._queue: asyncio.Queue[str] = asyncio.Queue()

  async def put(self, job_id: str) -> None:
    await self._queue.put(job_id)

  async def get(self) -> str:
    return await self._queue.get()

  def task_done(self) -> None:
    self._queue.task_done()

  async def join(self) -> None:
    await self._queue.join()

  def qsize(self) -> int:
    return self._queue.qsize()
