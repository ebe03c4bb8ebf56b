"""
Executable module for depfloor.

Running:
    python -m depfloor

is equivalent to:
    depfloor
"""

from __future__ import annotations

import sys


def main() -> int:
    """
    Main entrypoint when executing `python -m depfloor`.

    Returns:
        Exit code returned by the CLI.
    """
    # Import lazily so dependencies are only loaded during CLI use
    from depfloor.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
