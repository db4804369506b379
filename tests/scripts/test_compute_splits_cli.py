# tests/scripts/test_compute_splits_cli.py
from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

from region_prep.admin import AdminConfig, open_admin

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "compute_splits.py"


@pytest.fixture(scope="module")
def cli():
    module_spec = importlib.util.spec_from_file_location("compute_splits_cli", SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture()
def keys_file(tmp_path: Path) -> Path:
    path = tmp_path / "keys.txt"
    path.write_text("".join(f"user{i:03d}\n" for i in range(40)), encoding="utf-8")
    return path


def _run(cli, argv):
    return cli.main(argv + ["--executor", "serial", "--seed", "1"])


def test_prints_split_keys(cli, keys_file, capsys):
    assert _run(cli, [str(keys_file), "--regions", "4"]) == 0
    out, err = capsys.readouterr()
    lines = out.splitlines()
    assert len(lines) == 3
    assert lines == sorted(lines)
    assert all(line.startswith("user") for line in lines)
    assert "Regions produced:" in err


def test_hex_output(cli, keys_file, capsys):
    _run(cli, [str(keys_file), "--regions", "2", "--hex"])
    out, _ = capsys.readouterr()
    (line,) = out.splitlines()
    assert bytes.fromhex(line).startswith(b"user")


def test_create_table(cli, keys_file, tmp_path, capsys):
    root = tmp_path / "admin"
    _run(cli, [
        str(keys_file), "--regions", "4",
        "--create-table", "users", "--family", "p", "--family", "s",
        "--admin-root", str(root),
    ])
    out, err = capsys.readouterr()
    assert "Table users: 4 regions" in err

    with open_admin(AdminConfig(root)) as admin:
        assert admin.table_exists("users", ["p", "s"])
        printed = [line.encode("utf-8") for line in out.splitlines()]
        assert admin.region_split_keys("users") == printed


@pytest.mark.parametrize(
    "argv",
    [
        ["--regions", "4"],
        ["keys.txt", "--rocksdb", "/tmp/db", "--regions", "4"],
        ["keys.txt", "--regions", "4", "--create-table", "t"],
    ],
)
def test_bad_argument_combinations(cli, argv):
    with pytest.raises(SystemExit) as info:
        cli.main(argv)
    assert info.value.code == 2


def test_invalid_regions_reported_as_usage_error(cli, keys_file):
    with pytest.raises(SystemExit) as info:
        _run(cli, [str(keys_file), "--regions", "0"])
    assert info.value.code == 2


def test_worker_value_error_propagates(cli, keys_file, monkeypatch):
    import region_prep.splits.shuffle as shuffle

    def corrupt(path):
        raise ValueError(f"Truncated record in {path}")

    monkeypatch.setattr(shuffle, "iter_spill_file", corrupt)
    with pytest.raises(ValueError, match="Truncated record"):
        _run(cli, [str(keys_file), "--regions", "4"])


def test_invalid_worker_count_reported_as_usage_error(cli, keys_file):
    with pytest.raises(SystemExit) as info:
        _run(cli, [str(keys_file), "--regions", "4", "--workers", "0"])
    assert info.value.code == 2
