"""
Renderer - Jinja2-backed template rendering for one output format.

Provides:
- Directory-scoped template and partial lookup across search paths
- A single Jinja2 environment shared by every ``chdir`` copy
- Optional sandboxed execution
- RendererCache, the per-controller-type format -> renderer memo
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, TYPE_CHECKING

from jinja2 import Environment
from jinja2.sandbox import SandboxedEnvironment
from markupsafe import Markup

from .faults import TemplateNotFoundFault
from .loader import TemplateLoader
from .path import TemplatePath

if TYPE_CHECKING:
    from .scope import Scope

logger = logging.getLogger("viewkit.renderer")

PARTIAL_PREFIX = "_"


class Renderer:
    """
    Template renderer for a single output format.

    Args:
        paths: Template search paths (strings, PathLike or TemplatePath)
        format: Output format, used as the template file infix
            (``greeting.html.jinja``)
        environment: Existing Jinja2 environment to share (used by ``chdir``)
        **options: Renderer options. ``default_encoding`` sets the source
            encoding, ``sandbox`` enables a sandboxed environment, anything
            else is passed to the Jinja2 environment.

    Example:
        renderer = Renderer(["/app/templates"], format="html")
        html = renderer.template("users/index", scope)
    """

    def __init__(
        self,
        paths: Iterable[Any],
        format: str = "html",
        *,
        environment: Optional[Environment] = None,
        **options: Any,
    ):
        self.paths: List[TemplatePath] = [TemplatePath.normalize(path) for path in paths]
        self.format = format
        self.options: Dict[str, Any] = dict(options)
        self.environment = environment or self._create_environment()

    def _create_environment(self) -> Environment:
        options = dict(self.options)
        encoding = options.pop("default_encoding", "utf-8")
        sandbox = options.pop("sandbox", False)

        roots = []
        for path in self.paths:
            if path.root not in roots:
                roots.append(path.root)

        env_class = SandboxedEnvironment if sandbox else Environment
        logger.debug(
            "Creating %s for format %r over %d root(s)",
            env_class.__name__, self.format, len(roots),
        )
        return env_class(loader=TemplateLoader(roots, encoding=encoding), **options)

    def chdir(self, dirname: str) -> "Renderer":
        """
        Return a renderer whose lookups start in ``dirname``.

        The copy shares this renderer's environment; this renderer is unchanged.
        """
        return Renderer(
            [path.chdir(dirname) for path in self.paths],
            format=self.format,
            environment=self.environment,
            **self.options,
        )

    def lookup(self, name: str, include_shared: bool = True) -> Optional[str]:
        """Find ``name`` in the search paths, in order."""
        for path in self.paths:
            found = path.lookup(name, self.format, include_shared=include_shared)
            if found is not None:
                return found
        return None

    def template(self, name: str, scope: "Scope", content: Optional[str] = None) -> str:
        """
        Render template ``name`` against ``scope``.

        Args:
            name: Template name without format or engine extension
            scope: Scope providing template variables
            content: Already-rendered output to embed; available to the
                template as ``content``

        Raises:
            TemplateNotFoundFault: If the template cannot be found
        """
        path = self.lookup(name, include_shared=False)
        if path is None:
            raise TemplateNotFoundFault(name, self.format, self.paths)
        return self.render(path, scope, content)

    def partial(self, name: str, scope: "Scope") -> str:
        """Render partial ``name`` (file ``_name``) against ``scope``."""
        partial_name = self.name_for_partial(name)
        path = self.lookup(partial_name)
        if path is None:
            raise TemplateNotFoundFault(partial_name, self.format, self.paths)
        return self.render(path, scope)

    def render(self, path: str, scope: "Scope", content: Optional[str] = None) -> str:
        variables = scope.template_variables()
        if content is not None:
            variables["content"] = Markup(content)
        return self.environment.get_template(path).render(variables)

    @staticmethod
    def name_for_partial(name: str) -> str:
        *dirs, basename = name.split("/")
        return "/".join([*dirs, f"{PARTIAL_PREFIX}{basename}"])

    def __repr__(self) -> str:
        return f"Renderer(format={self.format!r}, paths={[str(p) for p in self.paths]!r})"


class RendererCache:
    """
    Thread-safe format -> Renderer memo owned by one controller type.

    Renderers are constructed at most once per format: the first lookup
    for a format constructs under a lock, later lookups read without it.
    Entries are never evicted.
    """

    def __init__(self):
        self._renderers: Dict[str, Renderer] = {}
        self._lock = threading.Lock()

    def fetch(self, format: str, factory: Callable[[], Renderer]) -> Renderer:
        """Return the cached renderer for ``format``, building it with ``factory`` once."""
        renderer = self._renderers.get(format)
        if renderer is not None:
            return renderer

        with self._lock:
            renderer = self._renderers.get(format)
            if renderer is None:
                renderer = factory()
                self._renderers[format] = renderer
                logger.debug("Cached renderer for format %r", format)

        return renderer

    def get(self, format: str) -> Optional[Renderer]:
        return self._renderers.get(format)

    def clear(self) -> None:
        with self._lock:
            self._renderers.clear()

    def __contains__(self, format: str) -> bool:
        return format in self._renderers

    def __len__(self) -> int:
        return len(self._renderers)
