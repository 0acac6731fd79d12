from __future__ import annotations

from pathlib import Path

import pytest

from starprnt.core.errors import JobLoadError, JobValidationError
from starprnt.core.job_loader import build_job, load_job


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def test_yaml_list_job(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "receipt.yaml",
        """
- appendAlignment: Center
  data: "Coffee Shop\\n"
- append: "Latte  3.50\\n"
- appendBarcode: "0123456789"
  hri: false
- appendCutPaper: PartialCutWithFeed
""",
    )
    job = load_job(path)
    assert len(job.commands) == 4
    assert job.emulation is None
    assert job.commands[2]["hri"] == "false"


def test_mapping_job_with_hints(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "receipt.yaml",
        """
emulation: StarPRNT
port: "TCP:192.168.1.50"
printer: mc-print3
printCommands:
  - append: "hello\\n"
""",
    )
    job = load_job(path)
    assert job.emulation == "StarPRNT"
    assert job.port == "TCP:192.168.1.50"
    assert job.printer == "mc-print3"
    assert job.commands == ({"append": "hello\n"},)


def test_json_job(tmp_path: Path) -> None:
    path = _write(tmp_path / "receipt.json", '{"commands": [{"appendLineFeed": 2}]}')
    assert load_job(path).commands == ({"appendLineFeed": 2},)


def test_duplicate_keys_rejected(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "dup.yaml",
        """
- append: one
  append: two
""",
    )
    with pytest.raises(JobValidationError):
        load_job(path)


def test_duplicate_json_keys_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "dup.json", '{"commands": [], "commands": []}')
    with pytest.raises(JobValidationError):
        load_job(path)


@pytest.mark.parametrize(
    "doc",
    [
        "just text",
        {"emulation": "StarLine"},
        {"commands": [], "printCommands": []},
        {"commands": ["append"]},
        {"commands": [], "colour": "red"},
    ],
)
def test_schema_violations_rejected(doc) -> None:
    with pytest.raises(JobValidationError):
        build_job(doc)


def test_missing_file_is_load_error(tmp_path: Path) -> None:
    with pytest.raises(JobLoadError):
        load_job(tmp_path / "nope.yaml")


def test_invalid_yaml_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "broken.yaml", "- append: [unclosed\n")
    with pytest.raises(JobValidationError):
        load_job(path)
