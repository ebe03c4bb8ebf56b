"""Resolve command implementation for depfloor.

Finds, for every package in a project that depends (directly or
transitively) on TARGET, the lowest published version it must be upgraded
to so that every copy of TARGET in its dependency closure is at least
REQUIRED_VERSION.

The command orchestrates three components:

1. **LockfileScanner**: lists the project's direct dependencies that pull
   in TARGET (skipped when ``--root`` is given).
2. **ResolverSession**: owns the shared metadata cache; every dependent
   is resolved concurrently through its :class:`BatchScheduler`.
3. **ProgressReporter**: drives a spinner while the batch runs.

Typical usage::

    $ depfloor resolve minimist 1.2.6
    $ depfloor resolve minimist 1.2.6 --lockfile app/package-lock.json
    $ depfloor resolve minimist 1.2.6 --root mkdirp@0.5.1 --format json
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
import contextlib
import dataclasses
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from depfloor.models import UpdateResult
from depfloor.config import DepFloorConfig
from depfloor.exceptions import DepFloorError
from depfloor.constants import DEFAULT_LOCKFILE
from depfloor.context import pass_context, DepFloorContext
from depfloor.core import LockfileScanner, ResolverSession, parse_dependent
from depfloor.utils.version_utils import parse_version
from depfloor.utils import (
    ProgressReporter,
    get_logger,
    print_error,
    print_success,
    print_warning,
    print_table,
    colorize_update_type,
    status,
)

logger = get_logger("commands.resolve")


@click.command()
@click.argument("target")
@click.argument("required_version")
@click.option(
    "--lockfile",
    "-l",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_LOCKFILE,
    show_default=True,
    help="npm lockfile used to discover dependents of TARGET.",
)
@click.option(
    "--root",
    "-r",
    "roots",
    multiple=True,
    metavar="NAME@VERSION",
    help="Resolve these packages instead of scanning the lockfile (repeatable).",
)
@click.option(
    "--expand-ranges/--no-expand-ranges",
    default=None,
    help="Also consider every published version a declared range allows.",
)
@click.option(
    "--registry",
    default=None,
    help="Override the registry URL from configuration.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def resolve(
    ctx: DepFloorContext,
    target: str,
    required_version: str,
    lockfile: Path,
    roots: Tuple[str, ...],
    expand_ranges: Optional[bool],
    registry: Optional[str],
    format: str,
) -> None:
    """Find the minimal upgrade of each dependent so TARGET >= REQUIRED_VERSION.

    Exits:
        0 if every dependent has a favourable outcome, 1 if at least one
        cannot satisfy the requirement or an error occurred.
    """
    if parse_version(required_version) is None:
        raise click.BadParameter(
            f"{required_version!r} is not a valid semantic version",
            param_hint="REQUIRED_VERSION",
        )

    config = ctx.config
    if registry:
        config = dataclasses.replace(config, registry_url=registry.rstrip("/"))
    if expand_ranges is None:
        expand_ranges = config.expand_ranges

    try:
        unfavourable = asyncio.run(
            _resolve_async(
                config,
                target,
                required_version,
                lockfile,
                roots,
                expand_ranges,
                format,
            )
        )
        sys.exit(1 if unfavourable else 0)

    except DepFloorError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in resolve command")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _resolve_async(
    config: DepFloorConfig,
    target: str,
    required_version: str,
    lockfile: Path,
    roots: Tuple[str, ...],
    expand_ranges: bool,
    format: str,
) -> bool:
    """Run the batch and render it.

    Returns:
        ``True`` if any dependent has no favourable outcome.
    """
    show_progress = format == "table"

    if roots:
        descriptors = list(roots)
    else:
        logger.info("Scanning %s for dependents of %s", lockfile, target)
        descriptors = LockfileScanner(lockfile).list_dependents(target)

    root_packages = [parse_dependent(d) for d in descriptors]
    if not root_packages:
        if show_progress:
            print_warning(f"No packages depending on {target} were found")
        else:
            click.echo("[]")
        return False

    spinner_cm = status("Resolving dependents...") if show_progress else contextlib.nullcontext()
    with spinner_cm as spinner:
        progress = ProgressReporter(
            on_update=(
                (lambda done, total: spinner.update(f"Resolving dependents ({done}/{total})"))
                if spinner is not None
                else None
            ),
        )
        async with ResolverSession.connect(config, progress=progress) as session:
            results = await session.list_update(
                expand_ranges, root_packages, target, required_version
            )

    unfavourable = [r for _, r in results if not r.is_favourable]

    if format == "json":
        _display_json(results)
    else:
        _display_table(results, target, required_version)
        if unfavourable:
            print_warning(
                f"\n{len(unfavourable)} package(s) cannot satisfy {target}>={required_version}"
            )
        else:
            print_success(f"\nEvery dependent can satisfy {target}>={required_version}")

    return bool(unfavourable)


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_table(
    results: List[Tuple[str, UpdateResult]],
    target: str,
    required_version: str,
) -> None:
    """Render results as a Rich table, one row per dependent."""
    data: List[Dict[str, str]] = []
    for name, result in results:
        data.append(
            {
                "Package": name,
                "Current": result.current_version or "-",
                "Minimal Version": (
                    result.resolved_version
                    if result.is_favourable
                    else f"[red]{result.message}[/red]"
                ),
                "Update Type": colorize_update_type(result.update_type),
            }
        )

    column_styles: Dict[str, Dict[str, Any]] = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Current": {"justify": "center", "style": "dim"},
        "Minimal Version": {"justify": "center"},
        "Update Type": {"justify": "center"},
    }

    print_table(
        data,
        title=f"Minimal upgrades for {target}>={required_version}",
        column_styles=column_styles,
    )


def _display_json(results: List[Tuple[str, UpdateResult]]) -> None:
    """Print results as a JSON array on stdout."""
    click.echo(json.dumps([result.to_json() for _, result in results], indent=2))
