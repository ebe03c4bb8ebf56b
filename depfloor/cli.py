"""
Command-line interface for depfloor.

The ``depfloor`` group owns the options shared by every command (config
file, verbosity, color), loads the configuration once and hands it to the
subcommands through :class:`DepFloorContext`.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from depfloor.config import load_config
from depfloor.__version__ import __version__
from depfloor.context import DepFloorContext
from depfloor.exceptions import ConfigError, DepFloorError
from depfloor.utils.logger import get_logger, setup_logging, verbosity_level
from depfloor.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="DEPFLOOR_CONFIG",
    help="Configuration file (default: depfloor.toml or [tool.depfloor] in pyproject.toml).",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Log progress to stderr (-v for info, -vv for debug).",
)
@click.option(
    "--color/--no-color",
    default=True,
    envvar="DEPFLOOR_COLOR",
    help="Enable or disable colored output.",
)
@click.version_option(version=__version__, prog_name="depfloor", message="%(prog)s %(version)s")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """depfloor: minimal upgrades that lift a dependency above a version floor.

    \b
    Commands:
      resolve TARGET VERSION   Minimal upgrade of every dependent of TARGET
      closure NAME VERSION     Transitive dependency closure of one package

    \b
    Examples:
      depfloor resolve minimist 1.2.6
      depfloor resolve minimist 1.2.6 --root mkdirp@0.5.1 --format json
      depfloor -vv closure express 4.18.2 --expand-ranges
    """
    level = verbosity_level(verbose)
    setup_logging(level=level, verbose=verbose > 1)
    logger.debug("Logging at %s", logging.getLevelName(level))

    try:
        loaded = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    state = DepFloorContext()
    state.config_path = config or loaded.source_path
    state.verbose = verbose
    state.color = color
    state.config = loaded
    ctx.obj = state

    logger.debug("depfloor %s, config %s", __version__, state.config_path or "<defaults>")
    logger.debug("Effective configuration: %s", loaded.to_log_dict())


from depfloor.commands.resolve import resolve  # noqa: E402
from depfloor.commands.closure import closure  # noqa: E402

cli.add_command(resolve)
cli.add_command(closure)


def main() -> int:
    """Run the CLI and translate failures into exit codes.

    Returns:
        0 on success, 1 on an error, 2 on a usage error, 130 when
        interrupted. ``resolve`` exits with 1 itself when any dependent
        has no favourable outcome.
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.exceptions.Abort:
        print_warning("\nAborted")
        return 130

    except DepFloorError as exc:
        print_error(str(exc))
        logger.debug("Error details: %s", exc.details or "<none>", exc_info=True)
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
