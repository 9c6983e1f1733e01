"""
Rendering Context - Request-scoped helpers shared by templates, parts and scopes.

Applications subclass Context to provide helpers (asset paths, current
user, flash messages...). Controllers bind their part builder and renderer
into a copy of the context for each call; the configured default context is
never mutated.
"""

import copy
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .part import PartBuilder
    from .renderer import Renderer


class Context:
    """
    Template rendering context.

    Attributes:
        part_builder: Part builder bound for the current call
        renderer: Renderer bound for the current call

    Example:
        class AppContext(Context):
            def asset_path(self, name):
                return f"/assets/{name}"

        context = AppContext(current_user=user)
    """

    part_builder: Optional["PartBuilder"] = None
    renderer: Optional["Renderer"] = None

    def __init__(self, **attributes: Any):
        for name, value in attributes.items():
            setattr(self, name, value)

    def bind(self, **dependencies: Any) -> "Context":
        """
        Return a copy of this context with ``dependencies`` set.

        Args:
            **dependencies: Attributes to set on the copy (typically
                ``part_builder`` and ``renderer``)
        """
        bound = copy.copy(self)
        for name, value in dependencies.items():
            setattr(bound, name, value)
        return bound

    def part(self, name: str, value: Any, **options: Any) -> Any:
        """
        Decorate ``value`` eagerly using the bound part builder.

        Raises:
            RuntimeError: If the context has not been bound to a controller call
        """
        if self.part_builder is None or self.renderer is None:
            raise RuntimeError(
                "Context is not bound. Parts can only be built from a context "
                "passed through Controller.__call__"
            )

        return self.part_builder(
            name=name,
            value=value,
            renderer=self.renderer,
            context=self,
            **options,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Public attributes set on this context."""
        return {
            key: value
            for key, value in vars(self).items()
            if not key.startswith("_")
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({', '.join(sorted(self.to_dict()))})"
