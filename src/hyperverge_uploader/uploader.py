"""Document uploader that runs one upload at a time."""

import logging
from collections.abc import Iterable
from pathlib import Path

from hyperverge_uploader.api_client import HypervergeAPIClient
from hyperverge_uploader.models import (
    Action,
    BatchResult,
    UploadFailure,
    UploadOutcome,
    UploadSuccess,
)
from hyperverge_uploader.sink import ResultSink
from hyperverge_uploader.utils import discover_files

logger = logging.getLogger(__name__)


class BatchCollector:
    """Accounts for each file of a batch exactly once.

    Outcomes must be recorded in input order; the cursor only moves forward
    one file at a time, so the batch is complete exactly when the cursor
    reaches the number of expected files. ``seal`` hands out the final
    result once.
    """

    def __init__(self, expected: int) -> None:
        if expected < 0:
            raise ValueError("Batch size cannot be negative")
        self.expected = expected
        self._cursor = 0
        self._results: list[UploadSuccess] = []
        self._errors: list[UploadFailure] = []
        self._sealed = False

    @property
    def recorded(self) -> int:
        return self._cursor

    @property
    def complete(self) -> bool:
        return self._cursor == self.expected

    def record(self, index: int, outcome: UploadOutcome) -> None:
        """Add the outcome of the file at ``index`` to its bucket.

        Raises:
            RuntimeError: If the index is not the next expected one
        """
        if self._sealed:
            raise RuntimeError("Cannot record into a sealed batch")
        if index != self._cursor or index >= self.expected:
            raise RuntimeError(
                f"Outcome for file {index} recorded out of order "
                f"(expected {self._cursor} of {self.expected})"
            )

        if isinstance(outcome, UploadFailure):
            self._errors.append(outcome)
        else:
            self._results.append(outcome)
        self._cursor += 1

    def seal(self) -> BatchResult:
        """Freeze the buckets into the final result.

        Raises:
            RuntimeError: If the batch is incomplete or was already sealed
        """
        if self._sealed:
            raise RuntimeError("Batch result already emitted")
        if not self.complete:
            raise RuntimeError(
                f"Batch incomplete: {self._cursor} of {self.expected} file(s) recorded"
            )
        self._sealed = True
        return BatchResult(results=tuple(self._results), errors=tuple(self._errors))


class DocumentUploader:
    """Sends documents to Hyperverge strictly one after another."""

    def __init__(
        self,
        api_client: HypervergeAPIClient,
        sink: ResultSink | None = None,
    ) -> None:
        """Initialize document uploader.

        Args:
            api_client: Hyperverge API client instance
            sink: Where the final result is written; nothing is written when None
        """
        self.api_client = api_client
        self.sink = sink

    async def run_single(self, file_path: Path, action: Action) -> UploadOutcome:
        """Upload one file and emit its outcome.

        Args:
            file_path: Document to upload
            action: Hyperverge action to run

        Returns:
            The upload outcome
        """
        outcome = await self._upload(file_path, action)
        self._emit(outcome)
        return outcome

    async def run_directory(self, directory: Path, action: Action) -> BatchResult:
        """Upload every supported file below a directory.

        Args:
            directory: Root of the documents tree
            action: Hyperverge action to run on each document

        Returns:
            The batch result

        Raises:
            DirectoryReadError: If the directory cannot be read; nothing is uploaded
        """
        files = discover_files(directory)
        logger.info(
            f"Found {len(files)} file(s) in {directory}:\n"
            + "\n".join(f"  {path}" for path in files)
        )
        return await self.run_batch(files, action)

    async def run_batch(self, files: Iterable[Path], action: Action) -> BatchResult:
        """Upload files in order, waiting for each before starting the next.

        A failed upload never stops the batch.

        Args:
            files: Documents to upload
            action: Hyperverge action to run on each document

        Returns:
            The batch result, also emitted to the sink once
        """
        files = list(files)
        collector = BatchCollector(len(files))

        for index, file_path in enumerate(files):
            outcome = await self._upload(file_path, action)
            collector.record(index, outcome)

        result = collector.seal()
        self._emit(result)
        return result

    async def _upload(self, file_path: Path, action: Action) -> UploadOutcome:
        outcome = await self.api_client.upload(file_path, action)
        if outcome.succeeded:
            logger.info(f"{action}: Success! FILE: {file_path}")
        else:
            logger.error(f"{action}: Failed! FILE: {file_path}")
            logger.debug(f"{action}: {outcome.err}")
        return outcome

    def _emit(self, value: UploadOutcome | BatchResult) -> None:
        if self.sink is not None:
            self.sink.emit(value)
