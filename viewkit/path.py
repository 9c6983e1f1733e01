"""
Template Path - Directory-scoped template lookup within one search root.

A TemplatePath pairs the directory lookups start from with the root it
belongs to. Lookups walk from the directory up to the root, so templates
scoped to ``users/index`` can reach partials in ``users/`` or the root.
"""

import os
from pathlib import Path
from typing import Optional, Union

ENGINE_EXTENSIONS = ("jinja", "jinja2", "j2")
SHARED_DIR = "shared"


class TemplatePath:
    """
    Directory within a template search root.

    Args:
        dir: Directory lookups start from
        root: Search root (defaults to ``dir``)
    """

    def __init__(self, dir: Union[str, os.PathLike], root: Optional[Union[str, os.PathLike]] = None):
        self.dir = Path(dir)
        self.root = Path(root) if root is not None else self.dir

    @classmethod
    def normalize(cls, raw: Union[str, os.PathLike, "TemplatePath"]) -> "TemplatePath":
        """Materialize a configured search path."""
        if isinstance(raw, cls):
            return raw
        return cls(raw)

    def chdir(self, dirname: str) -> "TemplatePath":
        """Return a path scoped to ``dirname`` below this directory."""
        return TemplatePath(self.dir / dirname, root=self.root)

    @property
    def is_root(self) -> bool:
        return self.dir == self.root

    def lookup(self, name: str, format: str, include_shared: bool = True) -> Optional[str]:
        """
        Find a template file for ``name`` in ``format``.

        Checks this directory, then its ``shared/`` subdirectory (if
        ``include_shared``), then each parent directory up to the root.

        Returns:
            Template path relative to the root (posix separators), or None
        """
        path: Optional[TemplatePath] = self
        while path is not None:
            found = path._lookup_here(name, format)
            if found is None and include_shared:
                found = path.chdir(SHARED_DIR)._lookup_here(name, format)
            if found is not None:
                return found
            path = None if path.is_root else TemplatePath(path.dir.parent, root=self.root)
        return None

    def _lookup_here(self, name: str, format: str) -> Optional[str]:
        candidates = [f"{name}.{format}.{ext}" for ext in ENGINE_EXTENSIONS]
        candidates.append(f"{name}.{format}")

        for candidate in candidates:
            full_path = self.dir / candidate
            if full_path.is_file():
                return full_path.relative_to(self.root).as_posix()
        return None

    def __eq__(self, other) -> bool:
        if not isinstance(other, TemplatePath):
            return NotImplemented
        return self.dir == other.dir and self.root == other.root

    def __hash__(self) -> int:
        return hash((self.dir, self.root))

    def __str__(self) -> str:
        return str(self.dir)

    def __repr__(self) -> str:
        return f"TemplatePath(dir={str(self.dir)!r}, root={str(self.root)!r})"
