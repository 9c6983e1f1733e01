"""
Rendered - Output of a controller call.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping


@dataclass(frozen=True)
class Rendered:
    """
    Rendered output plus the locals that produced it.

    Attributes:
        output: Final rendered string (layout included)
        locals: Every exposure's value, in registration order
        private: Names of private exposures within ``locals``
    """

    output: str
    locals: Mapping[str, Any] = field(default_factory=dict)
    private: FrozenSet[str] = frozenset()

    @property
    def public_locals(self) -> Dict[str, Any]:
        """Locals excluding private exposures."""
        return {
            name: value
            for name, value in self.locals.items()
            if name not in self.private
        }

    def __getitem__(self, name: str) -> Any:
        return self.locals[name]

    def __contains__(self, name: object) -> bool:
        return name in self.locals

    def __str__(self) -> str:
        return self.output
