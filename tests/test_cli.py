"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from blockfinder.cli import _setup_logging, app
from factories import diamond_chunk, make_chunk, make_section, single_block_indices, write_region


runner = CliRunner()


@pytest.fixture
def region_dir(tmp_path: Path) -> Path:
    region = tmp_path / "region"
    region.mkdir()
    write_region(region / "r.0.0.mca", {(1, 2): diamond_chunk(position=5)})
    write_region(region / "r.-1.0.mca", {(31, 0): diamond_chunk(position=0)})
    return region


@pytest.fixture
def no_config(tmp_path: Path) -> list[str]:
    return ["--config", str(tmp_path / "absent.toml")]


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("blockfinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("blockfinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestFindCommand:
    """Tests for the find command."""

    def test_grouped_output(self, region_dir: Path, no_config: list[str]) -> None:
        result = runner.invoke(
            app, ["find", "diamond_ore", "--path", str(region_dir), "-j", "1", *no_config]
        )

        assert result.exit_code == 0
        assert "     0      0 | r.0.0.mca" in result.stdout
        assert "  -512      0 | r.-1.0.mca" in result.stdout
        assert "Found chunks: 2" in result.stdout
        assert "16 -64 32 - minecraft:diamond_ore (1)" in result.stdout
        assert "-16 -64 0 - minecraft:diamond_ore (1)" in result.stdout

    def test_show_all_output(self, region_dir: Path, no_config: list[str]) -> None:
        result = runner.invoke(
            app, ["find", "diamond", "-p", str(region_dir), "-s", "-j", "1", *no_config]
        )

        assert result.exit_code == 0
        assert "21 -64 32 - minecraft:diamond_ore" in result.stdout
        assert "(1)" not in result.stdout

    def test_sorted_by_home(self, region_dir: Path, no_config: list[str]) -> None:
        result = runner.invoke(
            app,
            ["find", "diamond_ore", "-p", str(region_dir), "--home", "20", "30", "-j", "1", *no_config],
        )

        assert result.exit_code == 0
        near = result.stdout.index("16 -64 32 - minecraft:diamond_ore")
        far = result.stdout.index("-16 -64 0 - minecraft:diamond_ore")
        assert near < far

    def test_max_distance_prunes(self, region_dir: Path, no_config: list[str]) -> None:
        result = runner.invoke(
            app,
            [
                "find",
                "diamond_ore",
                "-p",
                str(region_dir),
                "--home",
                "20",
                "30",
                "-m",
                "30",
                "-j",
                "1",
                *no_config,
            ],
        )

        assert result.exit_code == 0
        assert "Found chunks: 1" in result.stdout
        assert "-16 -64 0" not in result.stdout

    def test_values_from_config_file(self, region_dir: Path, tmp_path: Path) -> None:
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            f'block = "diamond_ore"\npath = "{region_dir.as_posix()}"\nshow_all = true\nworkers = 1\n'
        )

        result = runner.invoke(app, ["find", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "21 -64 32 - minecraft:diamond_ore" in result.stdout

    def test_grouped_overrides_config_show_all(self, region_dir: Path, tmp_path: Path) -> None:
        """--grouped turns off show_all from the config file."""
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            f'block = "diamond_ore"\npath = "{region_dir.as_posix()}"\nshow_all = true\nworkers = 1\n'
        )

        result = runner.invoke(app, ["find", "--grouped", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "16 -64 32 - minecraft:diamond_ore (1)" in result.stdout
        assert "21 -64 32" not in result.stdout

    def test_cli_block_overrides_config(self, region_dir: Path, tmp_path: Path) -> None:
        config_file = tmp_path / "config.toml"
        config_file.write_text(f'block = "emerald"\npath = "{region_dir.as_posix()}"\nworkers = 1\n')

        result = runner.invoke(app, ["find", "diamond", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Found chunks: 2" in result.stdout

    def test_missing_block(self, region_dir: Path, no_config: list[str]) -> None:
        result = runner.invoke(app, ["find", "--path", str(region_dir), *no_config])
        assert result.exit_code == 2

    def test_missing_path(self, no_config: list[str]) -> None:
        result = runner.invoke(app, ["find", "diamond_ore", *no_config])
        assert result.exit_code == 2

    def test_missing_directory(self, tmp_path: Path, no_config: list[str]) -> None:
        result = runner.invoke(
            app, ["find", "diamond_ore", "-p", str(tmp_path / "nowhere"), *no_config]
        )
        assert result.exit_code == 2

    def test_bad_file_reported_with_results(self, region_dir: Path, no_config: list[str]) -> None:
        """A corrupt region fails on its own; the others are still printed."""
        (region_dir / "level.dat").write_bytes(b"\0")

        result = runner.invoke(
            app, ["find", "diamond_ore", "-p", str(region_dir), "-j", "1", *no_config]
        )

        assert result.exit_code == 1
        assert "FAILED level.dat" in result.stdout
        assert "Found chunks: 2" in result.stdout
        assert "1 region file(s) could not be scanned" in result.stdout

    def test_fail_fast_aborts(self, region_dir: Path, no_config: list[str]) -> None:
        (region_dir / "level.dat").write_bytes(b"\0")

        result = runner.invoke(
            app,
            ["find", "diamond_ore", "-p", str(region_dir), "-j", "1", "--fail-fast", *no_config],
        )

        assert result.exit_code == 1
        assert "Aborted" in result.stdout
        assert "Found chunks" not in result.stdout

    def test_keep_going_overrides_config_fail_fast(self, region_dir: Path, tmp_path: Path) -> None:
        (region_dir / "level.dat").write_bytes(b"\0")
        config_file = tmp_path / "config.toml"
        config_file.write_text("fail_fast = true\nworkers = 1\n")

        result = runner.invoke(
            app,
            ["find", "diamond_ore", "-p", str(region_dir), "--keep-going", "--config", str(config_file)],
        )

        assert result.exit_code == 1
        assert "Aborted" not in result.stdout
        assert "Found chunks: 2" in result.stdout

    def test_partial_chunks_not_reported(self, tmp_path: Path, no_config: list[str]) -> None:
        region = tmp_path / "region"
        region.mkdir()
        partial = make_chunk(
            [make_section(0, ["minecraft:air", "minecraft:diamond_ore"], single_block_indices(0))],
            status="minecraft:features",
        )
        write_region(region / "r.0.0.mca", {(0, 0): partial})

        result = runner.invoke(app, ["find", "diamond", "-p", str(region), "-j", "1", *no_config])

        assert result.exit_code == 0
        assert "Found chunks: 0" in result.stdout


class TestRegionsCommand:
    """Tests for the regions command."""

    def test_lists_origins(self, region_dir: Path) -> None:
        result = runner.invoke(app, ["regions", str(region_dir)])

        assert result.exit_code == 0
        assert "  -512      0 | r.-1.0.mca" in result.stdout
        assert "     0      0 | r.0.0.mca" in result.stdout

    def test_reports_invalid_names(self, region_dir: Path) -> None:
        (region_dir / "session.lock").write_bytes(b"")

        result = runner.invoke(app, ["regions", str(region_dir)])

        assert result.exit_code == 1
        assert "INVALID session.lock" in result.stdout

    def test_missing_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["regions", str(tmp_path / "missing")])
        assert result.exit_code == 2
