import asyncio
import shutil

import pytest

from shotsort.models.schemas import ClassificationResult
from shotsort.pipeline.relocator import RelocationError, Relocator, unique_destination
from tests.helpers import PNG_BYTES

NAME = "Screenshot 2024-03-05 at 10.15.42 PM.png"


def test_unique_destination_returns_free_path(tmp_path):
    assert unique_destination(tmp_path / "240305-terminal.png") == tmp_path / "240305-terminal.png"


def test_unique_destination_increments_suffix(tmp_path):
    (tmp_path / "240305-terminal.png").write_bytes(b"a")
    (tmp_path / "240305-terminal-1.png").write_bytes(b"b")

    assert unique_destination(tmp_path / "240305-terminal.png") == tmp_path / "240305-terminal-2.png"


def test_unique_destination_overwrite(tmp_path):
    (tmp_path / "240305-terminal.png").write_bytes(b"a")

    assert unique_destination(tmp_path / "240305-terminal.png", overwrite=True) == tmp_path / "240305-terminal.png"


def test_destination_uses_configured_category_only(output_dirs, tmp_path):
    relocator = Relocator(output_dirs)
    source = tmp_path / NAME

    known = relocator.destination_for(source, ClassificationResult(category="code", filename="terminal"), "240305")
    unknown = relocator.destination_for(source, ClassificationResult(category="games", filename="chess"), "240305")
    missing = relocator.destination_for(source, ClassificationResult(filename="chess"), "240305")

    assert known == output_dirs.output_root / "code" / "240305-terminal.png"
    assert unknown == output_dirs.output_root / "240305-chess.png"
    assert missing == output_dirs.output_root / "240305-chess.png"


def test_empty_date_keeps_dash_prefix(output_dirs, tmp_path):
    relocator = Relocator(output_dirs)

    destination = relocator.destination_for(tmp_path / "shot.png", ClassificationResult(filename="notes"), "")

    assert destination.name == "-notes.png"


def test_relocate_backs_up_and_moves(output_dirs, make_screenshot):
    source = make_screenshot(NAME)
    relocator = Relocator(output_dirs)

    new_path = asyncio.run(
        relocator.relocate(source, ClassificationResult(category="code", filename="terminal"), "240305")
    )

    assert new_path == output_dirs.output_root / "code" / "240305-terminal.png"
    assert new_path.read_bytes() == PNG_BYTES
    assert not source.exists()
    assert (output_dirs.originals_dir / NAME).read_bytes() == PNG_BYTES


def test_relocate_never_overwrites(output_dirs, make_screenshot):
    code_dir = output_dirs.output_root / "code"
    (code_dir / "240305-terminal.png").write_bytes(b"first")
    (code_dir / "240305-terminal-1.png").write_bytes(b"second")
    source = make_screenshot(NAME)

    new_path = asyncio.run(
        Relocator(output_dirs).relocate(source, ClassificationResult(category="code", filename="terminal"), "240305")
    )

    assert new_path == code_dir / "240305-terminal-2.png"
    assert (code_dir / "240305-terminal.png").read_bytes() == b"first"
    assert (code_dir / "240305-terminal-1.png").read_bytes() == b"second"


def test_backup_replaces_previous_backup(output_dirs, make_screenshot):
    (output_dirs.originals_dir / NAME).write_bytes(b"old backup")
    source = make_screenshot(NAME)

    asyncio.run(Relocator(output_dirs).relocate(source, ClassificationResult(filename="notes"), "240305"))

    assert (output_dirs.originals_dir / NAME).read_bytes() == PNG_BYTES


def test_move_failure_leaves_source_and_backup(output_dirs, make_screenshot, monkeypatch):
    source = make_screenshot(NAME)

    def fail_move(src, dst):
        raise PermissionError("read-only file system")

    monkeypatch.setattr(shutil, "move", fail_move)

    with pytest.raises(RelocationError, match="read-only file system"):
        asyncio.run(Relocator(output_dirs).relocate(source, ClassificationResult(filename="notes"), "240305"))

    assert source.exists()
    assert (output_dirs.originals_dir / NAME).exists()


def test_backup_failure_leaves_source(make_config, make_screenshot):
    config = make_config()  # output folders never created
    source = make_screenshot(NAME)

    with pytest.raises(RelocationError):
        asyncio.run(Relocator(config).relocate(source, ClassificationResult(filename="notes"), "240305"))

    assert source.exists()
