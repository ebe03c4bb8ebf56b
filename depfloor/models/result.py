"""
Resolution result model for depfloor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from depfloor.constants import NO_FAVOURABLE_OUTCOME_TEMPLATE
from depfloor.utils.version_utils import get_update_type


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of the minimal-version search for one root package.

    Attributes:
        package: Root package name.
        current_version: The caller's floor, normalized to a concrete version.
        resolved_version: Lowest version whose closure satisfies the
            requirement, or ``None`` when no probe was ever accepted.
        probes: Number of closures evaluated during the search.
    """

    package: str
    current_version: Optional[str]
    resolved_version: Optional[str]
    probes: int = 0

    @property
    def is_favourable(self) -> bool:
        """True when a satisfying version was found."""
        return self.resolved_version is not None

    @property
    def message(self) -> Optional[str]:
        """Descriptive text for an unfavourable outcome, else ``None``."""
        if self.is_favourable:
            return None
        return NO_FAVOURABLE_OUTCOME_TEMPLATE.format(package=self.package)

    @property
    def display_value(self) -> str:
        """The resolved version, or the "no favourable outcome" message."""
        return self.resolved_version if self.resolved_version is not None else self.message  # type: ignore[return-value]

    @property
    def update_type(self) -> str:
        """Semantic classification of the upgrade (``major``, ``same``, ...)."""
        if not self.is_favourable:
            return "unknown"
        return get_update_type(self.current_version, self.resolved_version)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "package": self.package,
            "current_version": self.current_version,
            "resolved_version": self.resolved_version,
            "favourable": self.is_favourable,
            "message": self.message,
            "update_type": self.update_type,
            "probes": self.probes,
        }
