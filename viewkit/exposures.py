"""
Exposures - Named computations producing template locals.

Provides:
- Exposure definitions (computed, or read from same-named input)
- The Exposures registry owned by each controller type
- BoundExposures, the per-instance callable that resolves locals
- ``expose`` / ``private_expose`` method decorators

Computation parameters:
- Positional parameters name other exposures and receive their resolved
  values; when no exposure has that name they read the same-named input
  key instead.
- Keyword-only parameters read input keys (defaults apply when absent),
  except ``context``, which receives the call's bound rendering context.
- ``**kwargs`` receives the remaining input.
"""

import inspect
import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, TypeVar, Union

from .faults import ExposureCycleFault

logger = logging.getLogger("viewkit.exposures")

F = TypeVar("F", bound=Callable[..., Any])

EXPOSURE_ATTR = "__exposure_options__"
RESERVED_OPTIONS = frozenset({"decorate", "layout", "private", "default"})
CONTEXT_PARAMETER = "context"

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


@dataclass(frozen=True)
class Computed:
    """Value computed by ``func``; ``method`` marks an unbound controller method."""
    func: Callable[..., Any]
    method: bool = False


@dataclass(frozen=True)
class FromInput:
    """Value read from the input key ``key``."""
    key: str


Source = Union[Computed, FromInput]


class Exposure:
    """
    A single exposure definition.

    Args:
        name: Local name
        source: Computed or FromInput (defaults to reading input ``name``)
        **options: Options bag. ``decorate`` (default True), ``layout``
            (default False), ``private`` (default False) and ``default``
            are understood here; the rest is passed to the part builder.
    """

    def __init__(self, name: str, source: Optional[Source] = None, **options: Any):
        self.name = name
        self.source = source or FromInput(name)
        self.options: Dict[str, Any] = dict(options)

    @property
    def decorate(self) -> bool:
        return bool(self.options.get("decorate", True))

    @property
    def for_layout(self) -> bool:
        return bool(self.options.get("layout", False))

    @property
    def private(self) -> bool:
        return bool(self.options.get("private", False))

    @property
    def default(self) -> Any:
        return self.options.get("default")

    @property
    def part_options(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in self.options.items()
            if key not in RESERVED_OPTIONS
        }

    @cached_property
    def parameters(self) -> List[inspect.Parameter]:
        if not isinstance(self.source, Computed):
            return []
        return list(inspect.signature(self.source.func).parameters.values())

    @cached_property
    def dependencies(self) -> List[str]:
        """Names of positional parameters (other than this exposure's own name)."""
        return [
            param.name
            for param in self.parameters
            if param.kind in _POSITIONAL and param.name != self.name
        ]

    def bind(self, obj: Any) -> "Exposure":
        """
        Bind this definition to a controller instance.

        Method exposures are bound to ``obj``; input exposures become method
        exposures when ``obj`` provides a same-named exposure method.
        """
        source = self.source

        if isinstance(source, Computed) and source.method:
            func = getattr(obj, source.func.__name__, None)
            if not callable(func):
                func = source.func.__get__(obj, type(obj))
            return Exposure(self.name, Computed(func), **self.options)

        if isinstance(source, FromInput):
            finder = getattr(obj, "exposure_method", None)
            method = finder(self.name) if finder is not None else None
            if method is not None:
                return Exposure(self.name, Computed(method), **self.options)

        return self

    def __call__(
        self,
        input: Mapping[str, Any],
        locals: Optional[Mapping[str, Any]] = None,
        context: Any = None,
    ) -> Any:
        """Compute this exposure's value from ``input`` and resolved ``locals``."""
        if isinstance(self.source, FromInput):
            return input.get(self.source.key, self.default)

        args, kwargs = self._arguments(input, locals or {}, context)
        return self.source.func(*args, **kwargs)

    def _arguments(self, input: Mapping[str, Any], locals: Mapping[str, Any], context: Any):
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        consumed = set()
        var_keyword = False

        for param in self.parameters:
            if param.kind in _POSITIONAL:
                if param.name != self.name and param.name in locals:
                    args.append(locals[param.name])
                elif param.name in input:
                    args.append(input[param.name])
                    consumed.add(param.name)
                elif param.default is not param.empty:
                    args.append(param.default)
                else:
                    args.append(None)
            elif param.kind is inspect.Parameter.KEYWORD_ONLY:
                consumed.add(param.name)
                if param.name == CONTEXT_PARAMETER and context is not None:
                    kwargs[param.name] = context
                elif param.name in input:
                    kwargs[param.name] = input[param.name]
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                var_keyword = True

        if var_keyword:
            for key, value in input.items():
                if key not in consumed:
                    kwargs[key] = value

        return args, kwargs

    def __repr__(self) -> str:
        return f"Exposure(name={self.name!r}, source={self.source!r}, options={self.options!r})"


class BoundExposures:
    """
    Exposures bound to one controller instance.

    Holds a snapshot of the registry taken at binding time.
    """

    def __init__(self, exposures: Mapping[str, Exposure]):
        self._exposures: Dict[str, Exposure] = dict(exposures)

    def __call__(
        self,
        input: Mapping[str, Any],
        decide: Optional[Callable[[Any, Exposure], Any]] = None,
        context: Any = None,
    ) -> Dict[str, Any]:
        """
        Resolve every exposure against ``input``.

        Args:
            input: Raw input values
            decide: Called with ``(value, exposure)`` as each value is
                computed; its result becomes the local (and is what
                dependent exposures receive)
            context: Rendering context for exposures declaring a
                keyword-only ``context`` parameter

        Returns:
            Locals in registration order

        Raises:
            ExposureCycleFault: If exposures depend on each other cyclically
        """
        resolved: Dict[str, Any] = {}

        def resolve(name: str, path: List[str]) -> None:
            if name in resolved:
                return
            if name in path:
                raise ExposureCycleFault(path[path.index(name):] + [name])

            exposure = self._exposures[name]
            for dependency in exposure.dependencies:
                if dependency in self._exposures:
                    resolve(dependency, path + [name])

            value = exposure(input, resolved, context)
            if decide is not None:
                value = decide(value, exposure)
            resolved[name] = value

        for name in self._exposures:
            resolve(name, [])

        return {name: resolved[name] for name in self._exposures}

    def __getitem__(self, name: str) -> Exposure:
        return self._exposures[name]

    def __contains__(self, name: object) -> bool:
        return name in self._exposures

    def __iter__(self) -> Iterator[str]:
        return iter(self._exposures)

    def __len__(self) -> int:
        return len(self._exposures)


class Exposures:
    """
    Ordered registry of exposure definitions for one controller type.
    """

    def __init__(self, exposures: Optional[Mapping[str, Exposure]] = None):
        self._exposures: Dict[str, Exposure] = dict(exposures or {})

    def add(
        self,
        name: str,
        func: Optional[Callable[..., Any]] = None,
        *,
        method: bool = False,
        **options: Any,
    ) -> Exposure:
        """
        Register an exposure, replacing any existing one with the same name.

        Args:
            name: Local name
            func: Computation (None reads the same-named input key)
            method: ``func`` is an unbound controller method
            **options: Exposure options
        """
        source = Computed(func, method=method) if func is not None else FromInput(name)
        exposure = Exposure(name, source, **options)

        if name in self._exposures:
            logger.debug("Replacing exposure %r", name)
        self._exposures[name] = exposure
        return exposure

    def import_exposure(self, name: str, exposure: Exposure) -> None:
        self._exposures[name] = exposure

    def copy(self) -> "Exposures":
        return Exposures(self._exposures)

    def bind(self, obj: Any) -> BoundExposures:
        return BoundExposures({
            name: exposure.bind(obj)
            for name, exposure in self._exposures.items()
        })

    def names(self) -> List[str]:
        return list(self._exposures)

    def __getitem__(self, name: str) -> Exposure:
        return self._exposures[name]

    def __contains__(self, name: object) -> bool:
        return name in self._exposures

    def __iter__(self) -> Iterator[str]:
        return iter(self._exposures)

    def __len__(self) -> int:
        return len(self._exposures)


def expose(func: Optional[F] = None, **options: Any) -> Any:
    """
    Mark a controller method as an exposure named after the method.

    Example:
        class UserView(Controller):
            @expose
            def user(self, *, id):
                return self.repo.get(id)

            @expose(layout=True)
            def title(self, user):
                return user.name
    """
    def decorator(f: F) -> F:
        setattr(f, EXPOSURE_ATTR, dict(options))
        return f

    if func is not None:
        return decorator(func)
    return decorator


def private_expose(func: Optional[F] = None, **options: Any) -> Any:
    """``expose`` with ``private=True``."""
    return expose(func, private=True, **options)
