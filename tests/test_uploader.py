"""White-box tests for serial batch uploads."""

import asyncio
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from hyperverge_uploader.api_client import HypervergeAPIClient
from hyperverge_uploader.models import Action, BatchResult, UploadFailure, UploadSuccess
from hyperverge_uploader.sink import ResultSink
from hyperverge_uploader.uploader import BatchCollector, DocumentUploader
from hyperverge_uploader.utils import DirectoryReadError


def success(file_path: Path, action: Action = Action.READ_PAN) -> UploadSuccess:
    return UploadSuccess(
        action=action, file=file_path, status="success", status_code="200", result=[]
    )


def failure(file_path: Path, action: Action = Action.READ_PAN) -> UploadFailure:
    return UploadFailure(action=action, file=file_path, err="upload failed")


def make_uploader(upload: AsyncMock) -> tuple[DocumentUploader, MagicMock]:
    api_client = MagicMock(spec=HypervergeAPIClient)
    api_client.upload = upload
    sink = MagicMock(spec=ResultSink)
    return DocumentUploader(api_client, sink=sink), sink


class TestBatchCollector:
    """Test exactly-once accounting of batch outcomes."""

    def test_collector_complete_when_all_recorded(self) -> None:
        """Test the batch completes after the last file is recorded."""
        collector = BatchCollector(2)
        collector.record(0, success(Path("/a.png")))
        assert not collector.complete

        collector.record(1, failure(Path("/b.png")))
        assert collector.complete

        result = collector.seal()
        assert [o.file for o in result.results] == [Path("/a.png")]
        assert [o.file for o in result.errors] == [Path("/b.png")]

    def test_collector_empty_batch_is_complete(self) -> None:
        """Test that an empty batch can be sealed immediately."""
        collector = BatchCollector(0)

        assert collector.complete
        assert collector.seal() == BatchResult()

    def test_collector_rejects_duplicate_record(self) -> None:
        """Test that the same file cannot be counted twice."""
        collector = BatchCollector(2)
        collector.record(0, success(Path("/a.png")))

        with pytest.raises(RuntimeError, match="out of order"):
            collector.record(0, success(Path("/a.png")))
        assert collector.recorded == 1

    def test_collector_rejects_out_of_order_record(self) -> None:
        """Test that a file cannot be skipped."""
        collector = BatchCollector(3)

        with pytest.raises(RuntimeError, match="out of order"):
            collector.record(1, success(Path("/b.png")))

    def test_collector_rejects_extra_record(self) -> None:
        """Test that more outcomes than files are refused."""
        collector = BatchCollector(1)
        collector.record(0, success(Path("/a.png")))

        with pytest.raises(RuntimeError):
            collector.record(1, success(Path("/b.png")))

    def test_collector_seal_incomplete(self) -> None:
        """Test that an incomplete batch cannot be sealed."""
        collector = BatchCollector(2)
        collector.record(0, success(Path("/a.png")))

        with pytest.raises(RuntimeError, match="incomplete"):
            collector.seal()

    def test_collector_seal_only_once(self) -> None:
        """Test that the result is handed out once."""
        collector = BatchCollector(1)
        collector.record(0, success(Path("/a.png")))
        collector.seal()

        with pytest.raises(RuntimeError, match="already emitted"):
            collector.seal()
        with pytest.raises(RuntimeError, match="sealed"):
            collector.record(0, success(Path("/a.png")))

    def test_collector_negative_size(self) -> None:
        """Test that a negative batch size is refused."""
        with pytest.raises(ValueError):
            BatchCollector(-1)


@pytest.mark.asyncio
class TestDocumentUploader:
    """Test document uploader functionality."""

    async def test_run_batch_is_serial(self) -> None:
        """Test that each upload starts only after the previous one resolved."""
        events: list[tuple[str, Path]] = []
        in_flight = 0
        max_in_flight = 0

        async def mock_upload(file_path: Path, action: Action) -> UploadSuccess:
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            events.append(("start", file_path))

            # Simulate upload delay
            await asyncio.sleep(0.01)

            events.append(("end", file_path))
            in_flight -= 1
            return success(file_path, action)

        files = [Path(f"/docs/doc{i}.png") for i in range(5)]
        uploader, _ = make_uploader(AsyncMock(side_effect=mock_upload))

        await uploader.run_batch(files, Action.READ_PAN)

        assert max_in_flight == 1
        expected: list[tuple[str, Path]] = []
        for path in files:
            expected += [("start", path), ("end", path)]
        assert events == expected

    async def test_run_batch_mixed_outcomes(self) -> None:
        """Test one success and one failure land in their buckets, emitted once."""
        files = [Path("/docs/pan.png"), Path("/docs/aadhaar.jpg")]
        outcome1 = success(files[0])
        outcome2 = failure(files[1])
        uploader, sink = make_uploader(AsyncMock(side_effect=[outcome1, outcome2]))

        result = await uploader.run_batch(files, Action.READ_PAN)

        assert result == BatchResult(results=(outcome1,), errors=(outcome2,))
        sink.emit.assert_called_once_with(result)

    async def test_run_batch_continues_after_failures(self) -> None:
        """Test that every file is attempted despite earlier failures."""
        files = [Path(f"/docs/doc{i}.png") for i in range(4)]
        outcomes = [failure(files[0]), failure(files[1]), success(files[2]), failure(files[3])]
        upload = AsyncMock(side_effect=outcomes)
        uploader, sink = make_uploader(upload)

        result = await uploader.run_batch(files, Action.READ_KYC)

        assert upload.await_count == 4
        assert [call.args[0] for call in upload.await_args_list] == files
        assert len(result.results) + len(result.errors) == len(files)
        assert [o.file for o in result.errors] == [files[0], files[1], files[3]]
        sink.emit.assert_called_once()

    @pytest.mark.parametrize("count", [0, 1, 3, 10])
    async def test_run_batch_accounts_for_every_file(self, count: int) -> None:
        """Test emission happens once with results + errors equal to the input."""
        files = [Path(f"/docs/doc{i}.pdf") for i in range(count)]

        async def mock_upload(file_path: Path, action: Action):
            index = files.index(file_path)
            return success(file_path) if index % 2 else failure(file_path)

        uploader, sink = make_uploader(AsyncMock(side_effect=mock_upload))

        result = await uploader.run_batch(files, Action.READ_PAN)

        sink.emit.assert_called_once_with(result)
        assert result.total == count

    async def test_run_batch_empty(self) -> None:
        """Test that an empty batch is emitted without any upload."""
        upload = AsyncMock()
        uploader, sink = make_uploader(upload)

        result = await asyncio.wait_for(uploader.run_batch([], Action.READ_PAN), timeout=1)

        assert result.to_dict() == {"results": [], "errors": []}
        upload.assert_not_awaited()
        sink.emit.assert_called_once_with(result)

    async def test_run_single(self) -> None:
        """Test that a single upload is emitted as-is."""
        outcome = failure(Path("/docs/pan.png"))
        uploader, sink = make_uploader(AsyncMock(return_value=outcome))

        result = await uploader.run_single(Path("/docs/pan.png"), Action.READ_PAN)

        assert result is outcome
        sink.emit.assert_called_once_with(outcome)

    async def test_run_directory_only_uploads_supported(self, tmp_path: Path) -> None:
        """Test that only supported files in a directory are attempted."""
        (tmp_path / "notes.txt").write_text("text")
        (tmp_path / "pan.png").write_bytes(b"png")
        upload = AsyncMock(side_effect=lambda path, action: success(path, action))
        uploader, sink = make_uploader(upload)

        result = await uploader.run_directory(tmp_path, Action.READ_PAN)

        upload.assert_awaited_once_with(tmp_path / "pan.png", Action.READ_PAN)
        assert [o.file for o in result.results] == [tmp_path / "pan.png"]
        assert result.errors == ()

    async def test_run_directory_order(self, temp_documents_dir: Path) -> None:
        """Test that uploads follow discovery order."""
        upload = AsyncMock(side_effect=lambda path, action: success(path, action))
        uploader, _ = make_uploader(upload)

        await uploader.run_directory(temp_documents_dir, Action.READ_KYC)

        assert [call.args[0] for call in upload.await_args_list] == [
            temp_documents_dir / "pan.png",
            temp_documents_dir / "nested" / "aadhaar.JPG",
            temp_documents_dir / "nested" / "deeper" / "passport.pdf",
        ]

    async def test_run_directory_unreadable(self, tmp_path: Path) -> None:
        """Test that a directory read failure stops before any upload."""
        upload = AsyncMock()
        uploader, sink = make_uploader(upload)

        with pytest.raises(DirectoryReadError):
            await uploader.run_directory(tmp_path / "missing", Action.READ_PAN)

        upload.assert_not_awaited()
        sink.emit.assert_not_called()

    async def test_run_batch_without_sink(self) -> None:
        """Test that the uploader works without a sink."""
        api_client = MagicMock(spec=HypervergeAPIClient)
        api_client.upload = AsyncMock(side_effect=lambda path, action: success(path, action))
        uploader = DocumentUploader(api_client)

        result = await uploader.run_batch([Path("/docs/a.png")], Action.READ_PAN)

        assert len(result.results) == 1

    async def test_run_directory_request_build_failure(
        self, tmp_path: Path, app_id: str
    ) -> None:
        """Test that a request httpx cannot build is recorded per file."""
        (tmp_path / "a.png").write_bytes(b"png")
        (tmp_path / "b.png").write_bytes(b"png")
        sink = MagicMock(spec=ResultSink)

        async with HypervergeAPIClient(app_id=app_id, app_key="clé-secrète") as client:
            uploader = DocumentUploader(client, sink=sink)
            result = await uploader.run_directory(tmp_path, Action.READ_PAN)

        assert result.results == ()
        assert [o.file for o in result.errors] == [tmp_path / "a.png", tmp_path / "b.png"]
        sink.emit.assert_called_once_with(result)
