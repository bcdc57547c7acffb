"""Command line interface for blockfinder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console

from blockfinder.config import DEFAULT_CONFIG_PATH, AppConfig, load_file_config
from blockfinder.errors import BlockFinderError, InvalidParameter, MissingParameter
from blockfinder.models import FileOutcome
from blockfinder.search.coordinates import region_coordinates
from blockfinder.search.orchestrator import BlockSearch
from blockfinder.search.results import format_results, sort_results
from blockfinder.utils.files import list_region_paths

LOGGER = logging.getLogger(__name__)

console = Console()
app = typer.Typer(help="blockfinder - locate blocks in Minecraft region files")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _print_progress(outcome: FileOutcome) -> None:
    if outcome.region is not None:
        console.print(
            f"{outcome.region.x:>6} {outcome.region.z:>6} | {outcome.path.name}",
            markup=False,
            highlight=False,
        )
    if not outcome.ok:
        console.print(
            f"FAILED {outcome.path.name}: {outcome.error}", style="red", markup=False, highlight=False
        )


def _load_config(config_path: Path, **overrides) -> AppConfig:
    try:
        return load_file_config(config_path).merge(**overrides)
    except InvalidParameter as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def find(
    block: Optional[str] = typer.Argument(None, help="Substring of the block name to search for"),
    path: Optional[Path] = typer.Option(
        None, "--path", "-p", help="Region file directory (e.g. saves/world/region)"
    ),
    show_all: Optional[bool] = typer.Option(
        None,
        "--show-all/--grouped",
        "-s/-g",
        help="Show every block, or a count per block name and chunk",
        show_default="grouped",
    ),
    max_distance: Optional[int] = typer.Option(
        None, "--max-distance", "-m", help="Only search chunks within this many blocks of home"
    ),
    home: Optional[Tuple[int, int]] = typer.Option(
        None, "--home", help="Origin X Z for distance filtering and sorting"
    ),
    workers: Optional[int] = typer.Option(None, "--workers", "-j", help="Number of worker processes"),
    fail_fast: Optional[bool] = typer.Option(
        None,
        "--fail-fast/--keep-going",
        help="Abort on the first unreadable region file",
        show_default="keep going",
    ),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="TOML configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search region files for blocks whose name contains BLOCK."""
    _setup_logging(verbose)
    config = _load_config(
        config_path,
        block=block,
        path=path,
        home=tuple(home) if home and None not in home else None,
        show_all=show_all,
        max_distance=max_distance,
        workers=workers,
        fail_fast=fail_fast,
    )

    try:
        request = config.to_request()
        paths = list_region_paths(request.path)
    except (MissingParameter, InvalidParameter) as exc:
        raise typer.BadParameter(str(exc)) from exc
    except BlockFinderError as exc:
        console.print(str(exc), style="red", markup=False, highlight=False)
        raise typer.Exit(code=1) from exc

    if request.max_distance is not None and request.origin is None:
        LOGGER.info("No home configured; measuring distance from (0, 0)")

    search = BlockSearch(request, workers=config.workers, fail_fast=config.fail_fast)
    try:
        report = search.run(paths, on_outcome=_print_progress)
    except BlockFinderError as exc:
        console.print(f"Aborted: {exc}", style="red", markup=False, highlight=False)
        raise typer.Exit(code=1) from exc

    results = sort_results(report.results, request.origin)
    console.print("\n\n")
    console.print(f"Found chunks: {len(results)}", highlight=False)
    for line in format_results(results, request.show_all):
        console.print(line, markup=False, highlight=False)

    if report.failures:
        console.print(
            f"[yellow]{len(report.failures)} region file(s) could not be scanned.[/yellow]"
        )
        raise typer.Exit(code=1)


@app.command()
def regions(
    path: Path = typer.Argument(..., help="Region file directory"),
) -> None:
    """List region files with the world coordinates they cover."""
    try:
        paths = list_region_paths(path)
    except InvalidParameter as exc:
        raise typer.BadParameter(str(exc)) from exc

    invalid = 0
    for region_path in paths:
        try:
            origin = region_coordinates(region_path)
        except BlockFinderError as exc:
            invalid += 1
            console.print(f"INVALID {region_path.name}: {exc}", style="red", markup=False, highlight=False)
            continue
        console.print(f"{origin.x:>6} {origin.z:>6} | {region_path.name}", markup=False, highlight=False)

    if invalid:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
