"""Closure command implementation for depfloor.

Prints the transitive dependency closure of one pinned package: every
package reached, the specifier it was reached under, and the concrete
version that specifier normalizes to.

Typical usage::

    $ depfloor closure express 4.18.2
    $ depfloor closure express 4.18.2 --expand-ranges --format json
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from typing import Dict, List, Optional

from depfloor.config import DepFloorConfig
from depfloor.core import ResolverSession
from depfloor.exceptions import DepFloorError
from depfloor.context import pass_context, DepFloorContext
from depfloor.utils import get_logger, print_error, print_table, get_raw_console

logger = get_logger("commands.closure")


@click.command()
@click.argument("name")
@click.argument("version")
@click.option(
    "--expand-ranges/--no-expand-ranges",
    default=None,
    help="Also include every published version a declared range allows.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def closure(
    ctx: DepFloorContext,
    name: str,
    version: str,
    expand_ranges: Optional[bool],
    format: str,
) -> None:
    """Show the transitive dependency closure of NAME@VERSION."""
    if expand_ranges is None:
        expand_ranges = ctx.config.expand_ranges

    try:
        rows = asyncio.run(_closure_async(ctx.config, name, version, expand_ranges))
    except DepFloorError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in closure command")
        sys.exit(1)

    if format == "json":
        click.echo(json.dumps(rows, indent=2))
    else:
        print_table(
            rows,
            headers=["package", "declared", "resolved"],
            title=f"Closure of {name}@{version} ({len(rows)} packages)",
        )
        if not expand_ranges:
            get_raw_console().print("[dim]Use --expand-ranges for the worst-case closure.[/dim]")


async def _closure_async(
    config: DepFloorConfig,
    name: str,
    version: str,
    expand_ranges: bool,
) -> List[Dict[str, str]]:
    """Compute the closure and normalize every member's version."""
    async with ResolverSession.connect(config) as session:
        members = sorted(
            await session.compute_closure(name, version, expand_ranges),
            key=lambda m: (m.name, m.version),
        )
        logger.info("Closure of %s@%s has %d members", name, version, len(members))
        resolved = await asyncio.gather(
            *(session.cache.resolve_version(m.name, m.version) for m in members)
        )

    return [
        {"package": m.name, "declared": m.version, "resolved": r}
        for m, r in zip(members, resolved)
    ]
