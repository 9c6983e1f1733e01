"""
Shared test fixtures for the viewkit test suite.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Dict

import pytest


TEMPLATES: Dict[str, str] = {
    "greeting.html.jinja": "Hello, {{ name }}!",
    "greeting.json.jinja": '{"greeting": "Hello, {{ name }}"}',
    "locals.html.jinja": "<p>{{ scope.locals.keys() | sort | join(',') }}</p>",
    "layouts/app.html.jinja": (
        "<html>[{{ scope.locals.keys() | sort | join(',') }}]{{ content }}</html>"
    ),
    "layouts/plain.html.jinja": "<main>{{ content }}</main>",
    "users/profile.html.jinja": "{{ user.name }}{{ render('badge') }}",
    "users/_badge.html.jinja": "<{{ user.name }}>",
    "users/list.html.jinja": "{% for user in users %}{{ user.render() }}{% endfor %}",
    "users/_user.html.jinja": "[{{ user.name }}]",
    "_footer.html.jinja": "footer",
    "shared/_nav.html.jinja": "nav",
    "plain.html": "plain {{ name }}",
    "shout.html.jinja": "{{ scope.shout() }}",
}


def write_templates(root: Path, templates: Dict[str, str]) -> Path:
    """Write ``{relative_path: source}`` under ``root``."""
    for relative, source in templates.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
    return root


@pytest.fixture
def templates_dir():
    """Create temporary templates directory."""
    temp_dir = tempfile.mkdtemp()
    templates_path = write_templates(Path(temp_dir) / "templates", TEMPLATES)

    yield str(templates_path)

    shutil.rmtree(temp_dir)


@pytest.fixture
def extra_templates_dir():
    """Second search root, lower priority than ``templates_dir``."""
    temp_dir = tempfile.mkdtemp()
    templates_path = write_templates(
        Path(temp_dir) / "extra",
        {
            "greeting.html.jinja": "shadowed",
            "fallback.html.jinja": "from extra: {{ name }}",
        },
    )

    yield str(templates_path)

    shutil.rmtree(temp_dir)
