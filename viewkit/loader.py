"""
Template Loader - Multi-root filesystem loader for Jinja2.

Serves templates by their path relative to a search root. Roots are
tried in order, so earlier roots shadow later ones.
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple
from pathlib import Path
import os
from jinja2 import BaseLoader, TemplateNotFound
from jinja2.loaders import FileSystemLoader

from .path import ENGINE_EXTENSIONS


class TemplateLoader(BaseLoader):
    """
    Ordered multi-root template loader.

    Args:
        search_paths: Template root directories, in priority order
        encoding: Source encoding of template files
    """

    def __init__(
        self,
        search_paths: Optional[Sequence[Any]] = None,
        encoding: str = "utf-8",
    ):
        self.search_paths = [Path(p) for p in (search_paths or [])]
        self.encoding = encoding

        self._fs_loaders = [
            FileSystemLoader(str(path), encoding=encoding)
            for path in self.search_paths
        ]

    def get_source(
        self,
        environment: Any,
        template: str
    ) -> Tuple[str, Optional[str], Optional[Callable[[], bool]]]:
        """
        Load template source.

        Returns:
            Tuple of (source, filename, uptodate_func)

        Raises:
            TemplateNotFound: If no root contains the template
        """
        for loader in self._fs_loaders:
            try:
                return loader.get_source(environment, template)
            except TemplateNotFound:
                continue

        raise TemplateNotFound(template)

    def list_templates(self) -> List[str]:
        """
        List all available templates.

        Returns:
            Sorted root-relative template names
        """
        templates = set()

        for path in self.search_paths:
            if not path.exists():
                continue

            for root, dirs, files in os.walk(path):
                root_path = Path(root)
                for filename in files:
                    if self._is_template_file(filename):
                        relative = (root_path / filename).relative_to(path)
                        templates.add(relative.as_posix())

        return sorted(templates)

    def _is_template_file(self, filename: str) -> bool:
        """Check if filename is a template file (``name.format[.ext]``)."""
        stem, _, extension = filename.rpartition(".")
        if extension in ENGINE_EXTENSIONS:
            return "." in stem
        return bool(stem) and not filename.startswith(".")
