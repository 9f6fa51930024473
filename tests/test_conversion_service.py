import asyncio
from pathlib import Path

import pytest

from s3clf.services.conversion import LogConversionService
from s3clf.services.logparser.logparser import S3AccessLogConverter

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def input_file(tmp_path: Path, plain_line: str, copy_line: str, partial_content_line: str) -> Path:
    log_file = tmp_path / "access.log"
    log_file.write_text(
        "\n".join([plain_line, copy_line, "garbage", partial_content_line]) + "\n",
        encoding="utf-8",
    )
    return log_file


def make_service(input_path: Path, output_path: Path, **kwargs) -> LogConversionService:
    converter = S3AccessLogConverter(
        copy_operation=kwargs.pop("copy_operation", "convert"),
        recalculate_partial_content=kwargs.pop("recalculate_partial_content", False),
    )
    return LogConversionService(converter=converter, input_path=input_path, output_path=output_path, **kwargs)


@pytest.mark.asyncio
async def test_run_converts_file(input_file: Path, tmp_path: Path) -> None:
    output = tmp_path / "access.clf.log"
    service = make_service(input_file, output, recalculate_partial_content=True)

    await service.run(skip_validation=True)

    lines = output.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("192.0.2.3 - 79a5 ")
    assert '"POST /source/key.txt HTTP/1.1"' in lines[1]
    assert " 206 134072 " in lines[2]
    assert service.total_processed == 4
    assert service.total_written == 3
    assert service.total_failed == 1
    assert service.total_dropped == 0
    assert service.total_recalculated == 1
    assert service.pending_lines == 0


@pytest.mark.asyncio
async def test_run_drop_policy(input_file: Path, tmp_path: Path) -> None:
    output = tmp_path / "access.clf.log"
    service = make_service(input_file, output, copy_operation="drop")

    await service.run(skip_validation=True)

    lines = output.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert all("REST.COPY.OBJECT_GET" not in line for line in lines)
    assert service.total_dropped == 1


@pytest.mark.asyncio
async def test_run_batches_writes(input_file: Path, tmp_path: Path) -> None:
    """Batches are appended as they fill up, leftovers on the final flush."""
    output = tmp_path / "access.clf.log"
    service = make_service(input_file, output, batch_size=2)
    flushes: list[int] = []
    original_flush = service._flush

    async def counting_flush() -> None:
        flushes.append(service.pending_lines)
        await original_flush()

    service._flush = counting_flush
    await service.run(skip_validation=True)

    assert flushes == [2, 1]
    assert len(output.read_text(encoding="utf-8").splitlines()) == 3


@pytest.mark.asyncio
async def test_flush_failure_keeps_pending_lines(input_file: Path, tmp_path: Path) -> None:
    """Lines stay buffered when the output file cannot be written."""
    service = make_service(input_file, tmp_path / "missing" / "access.clf.log")
    service._pending = ["first", "second"]

    with pytest.raises(OSError):
        await service._flush()

    assert service.pending_lines == 2
    assert service.total_written == 0


@pytest.mark.asyncio
async def test_run_unwritable_output(input_file: Path, tmp_path: Path) -> None:
    output = tmp_path / "missing" / "access.clf.log"
    service = make_service(input_file, output, batch_size=2)

    with pytest.raises(OSError):
        await service.run(skip_validation=True)

    assert service.pending_lines == 2
    assert service.total_written == 0

    output.parent.mkdir()
    await service._flush()
    assert len(output.read_text(encoding="utf-8").splitlines()) == 2
    assert service.total_written == 2


@pytest.mark.asyncio
async def test_run_invalid_utf8_input(tmp_path: Path, plain_line: str) -> None:
    """A line with bytes that are not UTF-8 is converted along with its neighbours."""
    good = plain_line.encode("utf-8")
    log_file = tmp_path / "access.log"
    log_file.write_bytes(good + b"\n" + good.replace(b"S3Console", b"S3Console\xff") + b"\n" + good + b"\n")
    output = tmp_path / "access.clf.log"
    service = make_service(log_file, output)

    await service.run(skip_validation=True)

    assert service.total_processed == 3
    assert service.total_failed == 0
    assert service.total_written == 3
    assert len(output.read_text(encoding="utf-8").splitlines()) == 3


@pytest.mark.asyncio
async def test_run_appends_to_existing_output(input_file: Path, tmp_path: Path) -> None:
    output = tmp_path / "access.clf.log"
    output.write_text("existing line\n", encoding="utf-8")
    service = make_service(input_file, output)

    await service.run(skip_validation=True)

    lines = output.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "existing line"
    assert len(lines) == 4


@pytest.mark.asyncio
async def test_run_missing_input(tmp_path: Path) -> None:
    output = tmp_path / "access.clf.log"
    service = make_service(tmp_path / "missing.log", output)

    await service.run(skip_validation=True)

    assert not output.exists()
    assert service.total_processed == 0


@pytest.mark.asyncio
async def test_run_with_validation(tmp_path: Path) -> None:
    log_file = tmp_path / "access.log"
    log_file.write_text((DATA_DIR / "valid_s3_log.txt").read_text(encoding="utf-8"), encoding="utf-8")
    output = tmp_path / "access.clf.log"
    service = make_service(log_file, output)

    await service.run()

    assert len(output.read_text(encoding="utf-8").splitlines()) == 5


@pytest.mark.asyncio
async def test_start_stop(input_file: Path, tmp_path: Path) -> None:
    """A following service keeps running until stopped and flushes on stop."""
    output = tmp_path / "access.clf.log"
    service = make_service(input_file, output, follow=True, flush_interval=60.0)
    service.converter.poll_interval = 0.01

    await service.start(skip_validation=True)
    assert service.is_running is True

    for _ in range(100):
        if service.total_processed == 4:
            break
        await asyncio.sleep(0.01)

    await service.stop(timeout=5.0)

    assert service.is_running is False
    assert service.total_processed == 4
    assert len(output.read_text(encoding="utf-8").splitlines()) == 3


@pytest.mark.asyncio
async def test_stop_without_start(input_file: Path, tmp_path: Path) -> None:
    service = make_service(input_file, tmp_path / "access.clf.log")
    await service.stop()
    assert service.is_running is False


def test_stats(input_file: Path, tmp_path: Path) -> None:
    service = make_service(input_file, tmp_path / "access.clf.log")
    assert service.stats() == {
        "total_processed": 0,
        "total_written": 0,
        "total_failed": 0,
        "total_dropped": 0,
        "total_recalculated": 0,
        "pending_lines": 0,
        "is_running": False,
    }
