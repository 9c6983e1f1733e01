"""
Controller - View rendering orchestrator.

A controller type declares settings and exposures; calling an instance
resolves locals from input, decorates them into parts, renders the
configured template against a scope, and optionally wraps the output in
a layout.

Example:
    class Greeting(Controller):
        settings = {
            "paths": ["templates"],
            "template": "greeting",
            "layout": "app",
        }

        @expose(layout=True)
        def user(self, *, name):
            return {"name": name}

    Greeting.expose("debug_info", decorate=False)

    rendered = Greeting()(name="Ada")
    rendered.output, rendered.locals
"""

import inspect
import logging
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional

from .config import ControllerConfig
from .context import Context
from .exposures import EXPOSURE_ATTR, BoundExposures, Exposure, Exposures
from .faults import ConfigInvalidFault, UndefinedTemplateFault
from .path import TemplatePath
from .rendered import Rendered
from .renderer import Renderer, RendererCache
from .scope import Scope

logger = logging.getLogger("viewkit.controller")

DEFAULT_LAYOUTS_DIR = "layouts"
EMPTY_LOCALS: Mapping[str, Any] = {}

# Set on every controller instance
INSTANCE_ATTRIBUTES = frozenset({
    "layout_dir",
    "layout_path",
    "template_path",
    "scope_builder",
    "part_builder",
    "exposures",
})


class Controller:
    """
    Base view controller.

    Class Attributes:
        settings: Setting overrides merged over the parent's config when
            the subclass is declared
        config: The resolved ControllerConfig for this type

    Instance Attributes:
        layout_dir: Directory layouts are looked up in
        layout_path: Layout template name
        template_path: Primary template name
        part_builder: Builds parts for decorated locals
        scope_builder: Builds template scopes
        exposures: Exposure registry bound to this instance
    """

    settings: ClassVar[Mapping[str, Any]] = {}
    config: ClassVar[ControllerConfig] = ControllerConfig()

    _exposures: ClassVar[Exposures] = Exposures()
    _renderers: ClassVar[RendererCache] = RendererCache()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        controller_bases = [base for base in cls.__bases__ if issubclass(base, Controller)]
        if len(controller_bases) > 1:
            raise ConfigInvalidFault(
                "bases",
                f"{cls.__qualname__} inherits from several controllers "
                f"({', '.join(base.__qualname__ for base in controller_bases)})",
            )
        parent = controller_bases[0]

        own_config = cls.__dict__.get("config")
        base_config = own_config if isinstance(own_config, ControllerConfig) else parent.config
        cls.config = base_config.merge(**dict(cls.__dict__.get("settings", {})))

        cls._exposures = parent._exposures.copy()
        cls._renderers = RendererCache()

        for attr_name, attr in cls.__dict__.items():
            func = attr.__func__ if isinstance(attr, (staticmethod, classmethod)) else attr
            options = getattr(attr, EXPOSURE_ATTR, None) or getattr(func, EXPOSURE_ATTR, None)
            if options is None:
                continue
            if not inspect.isfunction(func):
                raise ConfigInvalidFault(attr_name, "only functions and methods can be exposed")
            if attr_name in RESERVED_NAMES:
                raise ConfigInvalidFault(attr_name, "exposure shadows a Controller attribute")
            cls._exposures.add(attr_name, func, method=True, **options)

        logger.debug(
            "Declared controller %s with %d exposure(s)",
            cls.__qualname__, len(cls._exposures),
        )

    # ------------------------------------------------------------------
    # Type-level API
    # ------------------------------------------------------------------

    @classmethod
    def configure(cls, **settings: Any) -> ControllerConfig:
        """Override settings on this type only."""
        cls.config = cls.config.merge(**settings)
        return cls.config

    @classmethod
    def paths(cls) -> List[TemplatePath]:
        return [TemplatePath.normalize(path) for path in cls.config.paths]

    @classmethod
    def renderer(cls, format: str) -> Renderer:
        """Return this type's renderer for ``format``, constructing it once."""
        return cls._renderers.fetch(
            format,
            lambda: Renderer(cls.paths(), format=format, **cls.config.renderer_options),
        )

    @classmethod
    def renderer_cache(cls) -> RendererCache:
        return cls._renderers

    @classmethod
    def exposure_registry(cls) -> Exposures:
        return cls._exposures

    @classmethod
    def expose(cls, *names: str, func: Optional[Callable[..., Any]] = None, **options: Any) -> None:
        """
        Register exposures on this type.

        A single name may take a computation (``func``); several names
        each read their same-named input key and share ``options``.
        """
        if len(names) == 1:
            cls._exposures.add(names[0], func, **options)
            return

        if func is not None:
            raise TypeError("expose() accepts a computation only for a single name")

        for name in names:
            cls._exposures.add(name, **options)

    @classmethod
    def private_expose(cls, *names: str, func: Optional[Callable[..., Any]] = None, **options: Any) -> None:
        cls.expose(*names, func=func, private=True, **options)

    # ------------------------------------------------------------------
    # Instance
    # ------------------------------------------------------------------

    def __init__(self):
        self.config = type(self).config
        self.layout_dir = DEFAULT_LAYOUTS_DIR
        self.layout_path = f"{self.layout_dir}/{self.config.layout}"
        self.template_path = self.config.template

        self.scope_builder = self.config.scope_builder(
            namespace=self.config.scope_namespace,
            inflector=self.config.inflector,
        )
        self.part_builder = self.config.part_builder(
            namespace=self.config.part_namespace,
            inflector=self.config.inflector,
            scope_builder=self.scope_builder,
        )

        self.exposures: BoundExposures = type(self)._exposures.bind(self)

    def exposure_method(self, name: str) -> Optional[Callable[..., Any]]:
        """Bound method backing input exposure ``name``, if a subclass defines one."""
        for klass in type(self).__mro__:
            if klass is Controller:
                return None
            attr = klass.__dict__.get(name)
            if inspect.isfunction(attr) or isinstance(attr, (staticmethod, classmethod)):
                return getattr(self, name)
        return None

    def __call__(
        self,
        format: Optional[str] = None,
        context: Optional[Context] = None,
        **input: Any,
    ) -> Rendered:
        """
        Render this controller's template.

        Args:
            format: Output format (defaults to ``config.default_format``)
            context: Rendering context (defaults to ``config.default_context``)
            **input: Raw input for the exposures

        Returns:
            Rendered output with the full locals

        Raises:
            UndefinedTemplateFault: If no template is configured
        """
        if not self.template_path:
            raise UndefinedTemplateFault(type(self).__qualname__)

        format = format or self.config.default_format
        context = context if context is not None else self.config.default_context

        renderer = type(self).renderer(format)
        context = context.bind(part_builder=self.part_builder, renderer=renderer)

        locals = self._locals(renderer.chdir(self.template_path), context, input)

        output = renderer.template(
            self.template_path,
            self._template_scope(renderer, context, locals),
        )

        if self.config.layout_enabled:
            logger.debug("Wrapping %s in layout %r", self.template_path, self.layout_path)
            output = renderer.template(
                self.layout_path,
                self._layout_scope(renderer, context, self._layout_locals(locals)),
                content=output,
            )

        return Rendered(
            output=output,
            locals=MappingProxyType(locals),
            private=frozenset(name for name in self.exposures if self.exposures[name].private),
        )

    call = __call__

    def _locals(self, renderer: Renderer, context: Context, input: Mapping[str, Any]) -> Dict[str, Any]:
        def decide(value: Any, exposure: Exposure) -> Any:
            if exposure.decorate:
                return self._decorate_local(renderer, context, exposure.name, value, **exposure.part_options)
            return value

        return self.exposures(input, decide, context=context)

    def _layout_locals(self, locals: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            name: value
            for name, value in locals.items()
            if self.exposures[name].for_layout
        }

    def _template_scope(self, renderer: Renderer, context: Context, locals: Mapping[str, Any]) -> Scope:
        return self._scope(renderer.chdir(self.template_path), context, locals)

    def _layout_scope(self, renderer: Renderer, context: Context, locals: Mapping[str, Any] = EMPTY_LOCALS) -> Scope:
        return self._scope(renderer.chdir(self.layout_dir), context, locals)

    def _scope(self, renderer: Renderer, context: Context, locals: Mapping[str, Any] = EMPTY_LOCALS) -> Scope:
        return self.scope_builder(
            name=self.config.scope,
            locals=locals,
            context=context,
            renderer=renderer,
        )

    def _decorate_local(self, renderer: Renderer, context: Context, name: str, value: Any, **options: Any) -> Any:
        # Only present values are decorated
        if not value:
            return value

        return self.part_builder(
            name=name,
            value=value,
            renderer=renderer,
            context=context,
            namespace=self.config.part_namespace,
            **options,
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Controller):
            return NotImplemented
        return type(self) is type(other) and self.config == other.config

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(template={self.template_path!r}, layout={self.config.layout!r})"


# Exposure methods may not reuse the controller API or instance state
RESERVED_NAMES = INSTANCE_ATTRIBUTES | frozenset(
    name for name in vars(Controller) if not name.startswith("_")
)
