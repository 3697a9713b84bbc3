"""
Parallel Uploader Module

Streams batch files to their presigned URLs.

Features:
- Binary PUT with declared Content-Type
- Per-file progress callbacks (0-100)
- Bounded concurrency
- Cancellation of in-flight transfers
- Independent failures (siblings keep going)

Dependencies:
- aiohttp for async HTTP
- asyncio for scheduling

Author: CourseHub Development Team
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple

import aiohttp

from coursehub.shared.config import UPLOAD_CHUNK_SIZE, UPLOAD_MAX_CONCURRENCY, UPLOAD_TIMEOUT_SECONDS
from .errors import TransferError
from .models import PendingFile, UploadUrl

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]

def percent(sent: int, total: int) -> int:
    if total <= 0:
        return 100
    return min(100, int(sent * 100 / total + 0.5))

class ParallelUploader:
    """
    Concurrent PUT transfers.

    Attributes:
        max_concurrency: Maximum transfers in flight at once
        chunk_size: Bytes read per progress tick
        timeout: aiohttp timeout per transfer
    """

    def __init__(
        self,
        max_concurrency: Optional[int] = None,
        chunk_size: Optional[int] = None,
        timeout: Optional[float] = None
    ):
        self.max_concurrency = max(1, max_concurrency or UPLOAD_MAX_CONCURRENCY)
        self.chunk_size = chunk_size or UPLOAD_CHUNK_SIZE
        self.timeout = aiohttp.ClientTimeout(total=timeout or UPLOAD_TIMEOUT_SECONDS)

    async def _read_chunks(self, pending: PendingFile, report: ProgressCallback) -> AsyncIterator[bytes]:
        total = pending.file.file_size
        sent = 0
        with open(pending.file.path, 'rb') as f:
            while True:
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk
                sent += len(chunk)
                report(pending.id, percent(sent, total))

    async def put_file(
        self,
        session: aiohttp.ClientSession,
        pending: PendingFile,
        upload_url: str,
        report: ProgressCallback
    ) -> None:
        """
        PUT one file to its presigned URL.

        Args:
            session: Shared aiohttp session
            pending: File to send
            upload_url: Presigned PUT URL
            report: Progress callback (file id, percent)

        Raises:
            TransferError: On non-2xx responses or network failures
        """
        file_name = pending.file.file_name
        if pending.file.path is None:
            raise TransferError(file_name, "No local copy of the file to upload")

        headers = {
            "Content-Type": pending.file.content_type,
            "Content-Length": str(pending.file.file_size)
        }
        try:
            async with session.put(upload_url, data=self._read_chunks(pending, report), headers=headers) as response:
                if not 200 <= response.status < 300:
                    raise TransferError(file_name, f"Upload failed with status {response.status}", status=response.status)
        except aiohttp.ClientError as e:
            raise TransferError(file_name, f"Upload failed: {str(e)}") from e
        except asyncio.TimeoutError as e:
            raise TransferError(file_name, "Upload timed out") from e
        except OSError as e:
            raise TransferError(file_name, f"Could not read file: {str(e)}") from e

    async def _cancel_on_signal(self, cancel_event: asyncio.Event, tasks: List[asyncio.Future]) -> None:
        await cancel_event.wait()
        logger.info("Cancel requested, aborting in-flight transfers")
        for task in tasks:
            if not task.done():
                task.cancel()

    async def upload_all(
        self,
        pairs: List[Tuple[PendingFile, UploadUrl]],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> Dict[str, List[PendingFile]]:
        """
        Transfer every (file, URL) pair concurrently.

        Args:
            pairs: Files in "uploading" state with their issued URLs
            on_progress: Optional callback (file id, percent)
            cancel_event: Optional signal aborting in-flight transfers

        Returns:
            dict: Files by outcome under "completed", "failed", "cancelled"

        Notes:
            - Completed/error states are set as each transfer settles
            - Cancelled files are rolled back to pending
        """
        files_by_id = {pending.id: pending for pending, _ in pairs}

        def report(file_id: str, progress: int) -> None:
            value = files_by_id[file_id].update_progress(progress)
            if on_progress:
                on_progress(file_id, value)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async with aiohttp.ClientSession(timeout=self.timeout) as session:

            async def transfer(pending: PendingFile, url: UploadUrl) -> None:
                async with semaphore:
                    try:
                        await self.put_file(session, pending, url.upload_url, report)
                    except TransferError as e:
                        logger.error(f"Transfer failed: {e.message}")
                        pending.mark_error(e.message)
                        raise
                pending.mark_completed()
                if on_progress:
                    on_progress(pending.id, 100)
                logger.info(f"Uploaded {pending.file.file_name} ({pending.file.file_size} bytes)")

            tasks = [asyncio.ensure_future(transfer(pending, url)) for pending, url in pairs]
            watcher = None
            if cancel_event is not None:
                watcher = asyncio.ensure_future(self._cancel_on_signal(cancel_event, tasks))
            try:
                results = await asyncio.gather(*tasks, return_exceptions=True)
            finally:
                if watcher is not None:
                    watcher.cancel()

        outcome: Dict[str, List[PendingFile]] = {"completed": [], "failed": [], "cancelled": []}
        for (pending, _), result in zip(pairs, results):
            if isinstance(result, asyncio.CancelledError):
                pending.reset()
                outcome["cancelled"].append(pending)
            elif isinstance(result, TransferError):
                outcome["failed"].append(pending)
            elif isinstance(result, BaseException):
                logger.error(f"Unexpected transfer failure for {pending.file.file_name}: {str(result)}")
                pending.mark_error(f"{pending.file.file_name}: {str(result) or type(result).__name__}")
                outcome["failed"].append(pending)
            else:
                outcome["completed"].append(pending)
        return outcome
