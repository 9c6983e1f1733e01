"""
Scope - The object templates are evaluated against.

A scope combines the locals of one render with the rendering context and
a directory-scoped renderer. Application scopes subclass Scope to add
presentation helpers, and are found by name in the configured scope
namespace.
"""

import importlib
from typing import Any, Dict, Mapping, Optional, Type, Union

import inflection
from markupsafe import Markup


def namespace_lookup(namespace: Any, name: str, inflector: Any, base: type) -> Optional[type]:
    """
    Find a ``base`` subclass named after ``name`` in ``namespace``.

    ``namespace`` may be a module, a dotted module path, a class or a
    mapping. ``users/index`` is looked up as ``Index``.
    """
    if namespace is None or not name:
        return None

    if isinstance(namespace, str):
        namespace = importlib.import_module(namespace)

    class_name = inflector.camelize(name.rsplit("/", 1)[-1])

    if isinstance(namespace, Mapping):
        found = namespace.get(class_name)
    else:
        found = getattr(namespace, class_name, None)

    if isinstance(found, type) and issubclass(found, base):
        return found
    return None


class Scope:
    """
    Template scope.

    Attribute access resolves locals first, then context attributes, so
    scope subclasses can combine both in helper methods.

    Args:
        name: Scope name (also the default partial for ``render``)
        locals: Values available to the template
        context: Rendering context
        renderer: Directory-scoped renderer
        scope_builder: Builder used by ``scope`` to create sibling scopes
    """

    def __init__(
        self,
        name: Optional[str] = None,
        locals: Optional[Mapping[str, Any]] = None,
        context: Any = None,
        renderer: Any = None,
        scope_builder: Optional["ScopeBuilder"] = None,
    ):
        self._name = name
        self._locals = dict(locals or {})
        self._context = context
        self._renderer = renderer
        self._scope_builder = scope_builder

    @property
    def locals(self) -> Dict[str, Any]:
        return self._locals

    @property
    def context(self) -> Any:
        return self._context

    @property
    def renderer(self) -> Any:
        return self._renderer

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        scope_locals = self.__dict__.get("_locals", {})
        if name in scope_locals:
            return scope_locals[name]

        context = self.__dict__.get("_context")
        if context is not None and hasattr(context, name):
            return getattr(context, name)

        raise AttributeError(
            f"'{self.__class__.__name__}' has no local or context attribute '{name}'"
        )

    def render(self, partial_name: Optional[str] = None, **locals: Any) -> Markup:
        """
        Render a partial against this scope plus ``locals``.

        Args:
            partial_name: Partial to render (defaults to the scope's name)
        """
        partial_name = partial_name or self._name
        if partial_name is None:
            raise ValueError("render() needs a partial name for an unnamed scope")

        return Markup(self._renderer.partial(partial_name, self.new(locals={**self._locals, **locals})))

    def scope(self, name: Optional[str] = None, **locals: Any) -> "Scope":
        """Build another scope sharing this scope's context and renderer."""
        builder = self._scope_builder or ScopeBuilder()
        return builder(name=name, locals=locals, context=self._context, renderer=self._renderer)

    def new(self, klass: Optional[Type["Scope"]] = None, **overrides: Any) -> "Scope":
        """Copy this scope, optionally as ``klass``, replacing constructor arguments."""
        arguments = {
            "name": self._name,
            "locals": self._locals,
            "context": self._context,
            "renderer": self._renderer,
            "scope_builder": self._scope_builder,
        }
        arguments.update(overrides)
        return (klass or self.__class__)(**arguments)

    def template_variables(self) -> Dict[str, Any]:
        """Variables the template engine renders against."""
        return {
            "scope": self,
            "context": self._context,
            "render": self.render,
            **self._locals,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self._name!r}, locals={sorted(self._locals)!r})"


class ScopeBuilder:
    """
    Builds scopes, resolving scope classes from a namespace.

    Args:
        namespace: Module, dotted module path, class or mapping holding
            Scope subclasses
        inflector: Object providing ``camelize``
    """

    def __init__(self, namespace: Any = None, inflector: Any = inflection):
        self.namespace = namespace
        self.inflector = inflector

    def __call__(
        self,
        name: Union[str, Type[Scope], None] = None,
        locals: Optional[Mapping[str, Any]] = None,
        context: Any = None,
        renderer: Any = None,
    ) -> Scope:
        scope_class = self.scope_class(name)
        return scope_class(
            name=name if isinstance(name, str) else None,
            locals=locals,
            context=context,
            renderer=renderer,
            scope_builder=self,
        )

    def scope_class(self, name: Union[str, Type[Scope], None]) -> Type[Scope]:
        if isinstance(name, type) and issubclass(name, Scope):
            return name
        if isinstance(name, str):
            return namespace_lookup(self.namespace, name, self.inflector, Scope) or Scope
        return Scope
