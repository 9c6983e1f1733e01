"""
Parts - Template-friendly decorators around exposed values.

A Part wraps one value and delegates attribute and item access to it.
Applications subclass Part to add presentation methods; the PartBuilder
finds those subclasses in the configured part namespace by name
(``user`` -> ``User``) and wraps list values item by item.
"""

from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Type, Union

import inflection
from markupsafe import Markup

from .scope import Scope, ScopeBuilder, namespace_lookup

PartClassOption = Union[Type["Part"], Tuple[Type["Part"], Type["Part"]], None]


class Part:
    """
    Decorated value.

    Attributes:
        decorated_attributes: Attribute names of the wrapped value that are
            themselves returned as parts, mapped to part builder options

    Example:
        class User(Part):
            decorated_attributes = {"avatar": {}}

            def display_name(self):
                return f"{self.first_name} {self.last_name}"
    """

    decorated_attributes: Dict[str, Dict[str, Any]] = {}

    def __init__(
        self,
        name: str,
        value: Any,
        renderer: Any = None,
        context: Any = None,
        part_builder: Optional["PartBuilder"] = None,
    ):
        self._name = name
        self._value = value
        self._renderer = renderer
        self._context = context
        self._part_builder = part_builder
        self._decorated: Dict[str, Any] = {}

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        value = self.__dict__.get("_value")
        if isinstance(value, Mapping) and name in value:
            raw = value[name]
        else:
            raw = getattr(value, name)

        options = type(self).decorated_attributes.get(name)
        if options is None:
            return raw
        return self._decorate_attribute(name, raw, options)

    def _decorate_attribute(self, name: str, raw: Any, options: Dict[str, Any]) -> Any:
        if name in self._decorated:
            return self._decorated[name]

        if raw and self._part_builder is not None:
            raw = self._part_builder(
                name=name,
                value=raw,
                renderer=self._renderer,
                context=self._context,
                **options,
            )

        self._decorated[name] = raw
        return raw

    def render(self, partial_name: Optional[str] = None, **locals: Any) -> Markup:
        """
        Render a partial with this part available under its name.

        Args:
            partial_name: Partial to render (defaults to the part's name)
            **locals: Extra locals for the partial
        """
        scope_builder = getattr(self._part_builder, "scope_builder", None) or ScopeBuilder()
        scope = scope_builder(
            locals={self._name: self, **locals},
            context=self._context,
            renderer=self._renderer,
        )
        return Markup(self._renderer.partial(partial_name or self._name, scope))

    def new(self, klass: Optional[Type["Part"]] = None, **overrides: Any) -> "Part":
        """Copy this part, optionally as ``klass``, replacing constructor arguments."""
        arguments = {
            "name": self._name,
            "value": self._value,
            "renderer": self._renderer,
            "context": self._context,
            "part_builder": self._part_builder,
        }
        arguments.update(overrides)
        return (klass or self.__class__)(**arguments)

    def __getitem__(self, key: Any) -> Any:
        return self._value[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._value)

    def __len__(self) -> int:
        return len(self._value)

    def __bool__(self) -> bool:
        return bool(self._value)

    def __str__(self) -> str:
        return str(self._value)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Part):
            return self._name == other._name and self._value == other._value
        return self._value == other

    def __hash__(self) -> int:
        # Unhashable values fall back to identity
        try:
            return hash(self._value)
        except TypeError:
            return id(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self._name!r}, value={self._value!r})"


class PartBuilder:
    """
    Wraps exposed values in parts.

    Args:
        namespace: Module, dotted module path, class or mapping holding
            Part subclasses
        inflector: Object providing ``camelize`` and ``singularize``
        scope_builder: Scope builder used when parts render partials
    """

    def __init__(
        self,
        namespace: Any = None,
        inflector: Any = inflection,
        scope_builder: Optional[ScopeBuilder] = None,
    ):
        self.namespace = namespace
        self.inflector = inflector
        self.scope_builder = scope_builder

    def __call__(
        self,
        name: str,
        value: Any,
        renderer: Any = None,
        context: Any = None,
        namespace: Any = None,
        part_class: PartClassOption = None,
        **options: Any,
    ) -> Part:
        """
        Decorate ``value`` as part ``name``.

        Args:
            name: Exposure (or attribute) name
            value: Value to wrap
            renderer: Renderer parts render partials with
            context: Rendering context
            namespace: Namespace overriding the builder's own
            part_class: Part class, or ``(collection_class, item_class)``
                for list values
        """
        if namespace is None:
            namespace = self.namespace

        if isinstance(value, (list, tuple)):
            return self._build_collection(name, value, renderer, context, namespace, part_class)

        klass = part_class if isinstance(part_class, type) else None
        return self._build(name, value, renderer, context, namespace, klass)

    def _build_collection(self, name, value, renderer, context, namespace, part_class) -> Part:
        if isinstance(part_class, tuple):
            collection_class, item_class = part_class
        else:
            collection_class, item_class = None, part_class

        item_name = self.inflector.singularize(name)
        items = [
            self._build(item_name, item, renderer, context, namespace, item_class)
            for item in value
        ]
        return self._build(name, items, renderer, context, namespace, collection_class)

    def _build(self, name, value, renderer, context, namespace, klass) -> Part:
        if klass is None:
            klass = namespace_lookup(namespace, name, self.inflector, Part) or Part

        return klass(
            name=name,
            value=value,
            renderer=renderer,
            context=context,
            part_builder=self,
        )
