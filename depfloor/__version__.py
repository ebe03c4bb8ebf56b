"""
Version of the depfloor distribution.

``__version__`` is read by packaging tools and by ``depfloor --version``;
it is also embedded in the User-Agent sent to the registry.
"""

from __future__ import annotations

__version__ = "0.1.0.dev0"

#: ``depfloor --version`` output.
VERSION_STRING = f"depfloor {__version__}"
