"""
Viewkit - Jinja2-based view controllers.

A view controller turns named input into rendered output:
- Exposures compute template locals from input
- Parts decorate locals for presentation
- Scopes bind locals, context and renderer for the template
- Layouts wrap the rendered template

Example:
    from viewkit import Controller, expose

    class ProfileView(Controller):
        settings = {
            "paths": ["templates"],
            "template": "users/profile",
            "layout": "app",
        }

        @expose(layout=True)
        def user(self, *, id):
            return users.get(id)

    rendered = ProfileView()(id=1)
    print(rendered.output)
"""

__version__ = "0.1.0"

from .config import ControllerConfig, DEFAULT_RENDERER_OPTIONS
from .context import Context
from .controller import Controller
from .exposures import Exposure, Exposures, BoundExposures, expose, private_expose
from .faults import (
    Fault,
    FaultDomain,
    Severity,
    ConfigInvalidFault,
    UndefinedTemplateFault,
    UndefinedTemplateError,
    TemplateNotFoundFault,
    ExposureCycleFault,
)
from .loader import TemplateLoader
from .part import Part, PartBuilder
from .path import TemplatePath
from .rendered import Rendered
from .renderer import Renderer, RendererCache
from .scope import Scope, ScopeBuilder

__all__ = [
    # Core
    "Controller",
    "ControllerConfig",
    "DEFAULT_RENDERER_OPTIONS",
    "Rendered",

    # Exposures
    "Exposure",
    "Exposures",
    "BoundExposures",
    "expose",
    "private_expose",

    # Rendering
    "Context",
    "Part",
    "PartBuilder",
    "Scope",
    "ScopeBuilder",
    "Renderer",
    "RendererCache",
    "TemplateLoader",
    "TemplatePath",

    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "ConfigInvalidFault",
    "UndefinedTemplateFault",
    "UndefinedTemplateError",
    "TemplateNotFoundFault",
    "ExposureCycleFault",
]
