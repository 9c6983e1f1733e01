"""
Controller configuration - Frozen, inheritable settings.

Each controller type owns one ControllerConfig. Subclasses derive theirs
from the parent's with ``merge``, so overriding a setting never reaches
back into an ancestor.
"""

import os
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

import inflection

from .context import Context
from .faults import ConfigInvalidFault
from .part import PartBuilder
from .scope import Scope, ScopeBuilder

DEFAULT_RENDERER_OPTIONS: Mapping[str, Any] = MappingProxyType({"default_encoding": "utf-8"})
DEFAULT_CONTEXT = Context()


@dataclass(frozen=True)
class ControllerConfig:
    """
    Settings shared by every instance of a controller type.

    Attributes:
        paths: Template search paths, in priority order
        layout: Layout name (under ``layouts/``), or False/None for no layout
        template: Template name rendered by the controller
        default_format: Output format used when a call names none
        renderer_options: Renderer options, always merged over
            DEFAULT_RENDERER_OPTIONS
        default_context: Context used when a call passes none
        scope: Scope class or name for template scopes
        inflector: Naming helper (``camelize``, ``singularize``)
        part_builder: Part builder class
        part_namespace: Where part classes are looked up
        scope_builder: Scope builder class
        scope_namespace: Where scope classes are looked up
    """

    paths: Tuple[Union[str, os.PathLike], ...] = ()
    layout: Union[str, bool, None] = False
    template: Optional[str] = None
    default_format: str = "html"
    renderer_options: Mapping[str, Any] = field(default_factory=dict)
    default_context: Context = DEFAULT_CONTEXT
    scope: Union[str, Type[Scope], None] = None
    inflector: Any = inflection
    part_builder: Type[PartBuilder] = PartBuilder
    part_namespace: Any = None
    scope_builder: Type[ScopeBuilder] = ScopeBuilder
    scope_namespace: Any = None

    def __post_init__(self):
        paths = self.paths
        if paths is None:
            paths = ()
        elif isinstance(paths, (str, os.PathLike)):
            paths = (paths,)
        object.__setattr__(self, "paths", tuple(paths))

        if not isinstance(self.renderer_options, Mapping):
            raise ConfigInvalidFault("renderer_options", "must be a mapping")
        object.__setattr__(
            self,
            "renderer_options",
            MappingProxyType({**DEFAULT_RENDERER_OPTIONS, **self.renderer_options}),
        )

        if not self.default_format:
            raise ConfigInvalidFault("default_format", "must not be empty")

    @classmethod
    def setting_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def merge(self, **overrides: Any) -> "ControllerConfig":
        """
        Return a copy with ``overrides`` applied.

        Raises:
            ConfigInvalidFault: On unknown setting names
        """
        known = self.setting_names()
        for key in overrides:
            if key not in known:
                raise ConfigInvalidFault(key, "unknown setting")

        if "renderer_options" in overrides and overrides["renderer_options"] is None:
            overrides["renderer_options"] = {}

        return replace(self, **overrides)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ControllerConfig":
        """Build a config from a plain mapping (e.g. a loaded config file section)."""
        return cls().merge(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result["paths"] = list(self.paths)
        result["renderer_options"] = dict(self.renderer_options)
        return result

    @property
    def layout_enabled(self) -> bool:
        return bool(self.layout)
