"""
Cookie session import worker.

Importing a cookie session makes Zalo do a slow handshake, so the HTTP call
only queues a job and returns. A single worker task drains the queue; each
job records its own outcome, which callers can poll by job id or await in
tests.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from zalo_bridge.database import utc_now
from zalo_bridge.models.schemas import ImportJobView

logger = logging.getLogger(__name__)


class ImportJobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ImportJob:
    imei: str
    user_agent: str
    cookies: List[Dict[str, Any]]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: ImportJobStatus = ImportJobStatus.PENDING
    error: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    finished_at: Optional[str] = None
    done: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def view(self) -> ImportJobView:
        return ImportJobView(
            jobId=self.id,
            status=self.status.value,
            error=self.error,
            createdAt=self.created_at,
            finishedAt=self.finished_at,
        )

    async def wait(self) -> "ImportJob":
        await self.done.wait()
        return self


class SessionImportWorker:
    """Runs cookie imports one at a time against the Zalo client."""

    def __init__(self, zalo_client, max_history: int = 50):
        self.zalo = zalo_client
        self.max_history = max_history
        self.jobs: Dict[str, ImportJob] = {}
        self.queue: Optional[asyncio.Queue] = None
        self.worker_task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self.worker_task and not self.worker_task.done():
            logger.warning("⚠️ Session import worker already running")
            return
        self.queue = asyncio.Queue()
        self.worker_task = asyncio.create_task(self._worker_loop())
        logger.info("🚀 Session import worker started")

    async def stop(self) -> None:
        if self.worker_task:
            self.worker_task.cancel()
            try:
                await self.worker_task
            except asyncio.CancelledError:
                pass
            self.worker_task = None
            logger.info("🛑 Session import worker stopped")

    async def submit(self, imei: str, user_agent: str, cookies: List[Dict[str, Any]]) -> ImportJob:
        if self.queue is None:
            raise RuntimeError("Session import worker is not running")
        job = ImportJob(imei=imei, user_agent=user_agent, cookies=cookies)
        self.jobs[job.id] = job
        self._prune()
        await self.queue.put(job)
        logger.info(f"📬 Queued cookie login job {job.id} (queue_depth={self.queue.qsize()})")
        return job

    def get(self, job_id: str) -> Optional[ImportJob]:
        return self.jobs.get(job_id)

    def _prune(self) -> None:
        """Forget the oldest finished jobs beyond max_history."""
        finished = [j for j in self.jobs.values() if j.done.is_set()]
        for job in finished[: max(0, len(self.jobs) - self.max_history)]:
            self.jobs.pop(job.id, None)

    async def _worker_loop(self) -> None:
        while True:
            job = await self.queue.get()
            try:
                await self._run(job)
            finally:
                self.queue.task_done()

    async def _run(self, job: ImportJob) -> None:
        job.status = ImportJobStatus.RUNNING
        logger.info(f"⚙️ Running cookie login job {job.id}")
        try:
            await self.zalo.login_import_session(job.imei, job.user_agent, job.cookies)
            job.status = ImportJobStatus.SUCCEEDED
            logger.info(f"✅ Cookie login job {job.id} succeeded")
        except Exception as e:
            job.status = ImportJobStatus.FAILED
            job.error = str(e)
            logger.error(f"❌ Background cookie login {job.id} failed: {e}")
        finally:
            job.finished_at = utc_now()
            job.done.set()
