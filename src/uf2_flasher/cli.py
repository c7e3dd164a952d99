"""
UF2 Flasher CLI

Command-line interface for flashing UF2 firmware onto bootloader volumes
and dumping UF2 block metadata.
"""

import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler

from uf2_flasher.uf2 import UF2Error, read_blocks
from uf2_flasher.mount import DEFAULT_POLL_INTERVAL
from uf2_flasher.targets import (
    FlashTarget,
    UnknownTargetError,
    family_name,
    get_target,
    list_targets as registry_list_targets,
)
from uf2_flasher.core.parsing import parse_family_id as _parse_family_id_core, parse_timeout
from uf2_flasher.core.results import OperationResult
from uf2_flasher.core.actions import flash_firmware, dump_blocks

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = logging.getLogger("uf2_flasher")

# Setup Rich console
console = Console()

app = typer.Typer(help="UF2 Flasher - flash and inspect UF2 firmware images")


def print_header(text: str) -> None:
    """Print fancy header."""
    console.print(Panel(escape(text), expand=False, style="bold blue"))


def print_plain(text: str) -> None:
    """Print text verbatim: no markup, no highlighting, no wrapping."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


# Messages below can carry user paths, so markup is off.
def print_success(text: str) -> None:
    """Print success message."""
    console.print(f"✓ {text}", style="green", markup=False)


def print_warning(text: str) -> None:
    """Print warning message."""
    console.print(f"⚠️  {text}", style="yellow", markup=False)


def print_error(text: str) -> None:
    """Print error message."""
    console.print(f"❌ {text}", style="red", markup=False)


def print_result(result: OperationResult) -> None:
    """Print warnings and errors from an OperationResult."""
    for warning in result.warnings:
        print_warning(warning)
    for error in result.errors:
        print_error(error)


def print_json(data) -> None:
    """Print data as indented JSON for scripting."""
    print_plain(json.dumps(data, indent=2))


def parse_family_id(value: str) -> int:
    """
    Parse a family id from string.

    CLI wrapper around core.parsing.parse_family_id that converts
    ValueError to typer.BadParameter for proper CLI error handling.
    """
    try:
        return _parse_family_id_core(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def resolve_target(name: str, family: Optional[List[str]] = None) -> FlashTarget:
    """Look up a registry target, optionally overriding its family ids."""
    try:
        target = get_target(name)
    except UnknownTargetError as e:
        raise typer.BadParameter(str(e))
    if family:
        family_ids = tuple(parse_family_id(value) for value in family)
        target = dataclasses.replace(target, family_ids=family_ids)
    return target


@app.callback()
def root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """UF2 Flasher - flash and inspect UF2 firmware images."""
    logger.setLevel(logging.DEBUG if verbose else logging.NOTSET)


@app.command()
def flash(
    download_path: Path = typer.Argument(..., help="Firmware download directory"),
    target_name: str = typer.Option("glove80", "--target", "-t", help="Flash target (see list-targets)"),
    family: Optional[List[str]] = typer.Option(
        None, "--family", "-f",
        help="Family id to look for instead of the target's (repeatable, e.g. 0x9807B007)",
    ),
    mounts: Optional[Path] = typer.Option(
        None, "--mounts", "-m",
        help="Directory where volumes are mounted (default: platform specific)",
    ),
    interval: float = typer.Option(DEFAULT_POLL_INTERVAL, "--interval", help="Seconds between mount checks"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout",
        help="Give up after this many seconds (default: wait forever)",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Select firmware and wait, but do not copy"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output the result as JSON for scripting"),
) -> None:
    """
    Flash the most recent firmware onto the target's bootloader volume.

    Picks the newest .uf2 file in DOWNLOAD_PATH that has blocks for the
    target, waits for a bootloader volume to appear, then copies the file.
    """
    if not download_path.is_dir():
        print_error(f"Not a directory: {download_path}")
        sys.exit(1)

    target = resolve_target(target_name, family)
    if not output_json:
        print_header(f"Flash {target.description}")

    result = flash_firmware(
        download_path,
        target,
        mounts_path=mounts,
        interval=interval,
        timeout=parse_timeout(timeout),
        dry_run=dry_run,
        on_status=None if output_json else print_plain,
    )

    if output_json:
        print_json(result.to_dict())
        if not result.ok:
            sys.exit(1)
        return

    print_result(result)
    if not result.ok:
        sys.exit(1)
    print_success("Done!")


@app.command()
def dump(
    uf2_path: Path = typer.Argument(..., help="UF2 firmware path"),
    names: bool = typer.Option(False, "--names", "-n", help="Show known family names"),
    flags: bool = typer.Option(False, "--flags", help="Show the names of the flag bits set"),
) -> None:
    """Print the metadata of every block in a UF2 file, one line per block."""
    if not uf2_path.exists():
        print_error(f"File not found: {uf2_path}")
        sys.exit(1)

    try:
        with read_blocks(uf2_path) as blocks:
            for line in dump_blocks(blocks, show_names=names, show_flags=flags):
                print_plain(line)
            skipped = blocks.skipped
    except (OSError, UF2Error) as e:
        print_error(f"Dump failed: {e}")
        sys.exit(1)

    if skipped:
        print_warning(f"Skipped {skipped} non-UF2 block(s)")


@app.command("list-targets")
def list_targets(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON for scripting"),
) -> None:
    """List supported flash targets."""
    targets = registry_list_targets()
    if output_json:
        print_json([target.to_dict() for target in targets])
        return

    print_header("Supported Targets")

    table = Table(title="Flash Targets")
    table.add_column("Target", style="cyan")
    table.add_column("Description", style="green")
    table.add_column("Family IDs", style="yellow")
    table.add_column("Volumes", style="magenta")
    table.add_column("Notes", style="dim")

    for target in targets:
        ids = ", ".join(
            f"0x{fid:08X}" + (f" ({family_name(fid)})" if family_name(fid) else "")
            for fid in target.family_ids
        )
        table.add_row(
            target.name,
            target.description,
            ids,
            ", ".join(target.volume_names),
            "\n".join(target.notes),
        )

    console.print(table)


def main() -> None:
    """Main entry point."""
    try:
        # Ctrl-C surfaces here as click Abort in non-standalone mode
        app(standalone_mode=False)
    except click.exceptions.Abort:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(0)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except Exception as e:
        console.print(f"\n[red bold]Fatal error:[/red bold] {escape(str(e))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
