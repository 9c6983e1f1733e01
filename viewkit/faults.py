"""
Viewkit Faults - Structured fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels
- Concrete faults raised by configuration, exposure resolution
  and template lookup
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Controller configuration errors")
FaultDomain.VIEW = FaultDomain("view", "Template lookup and rendering errors")
FaultDomain.EXPOSURE = FaultDomain("exposure", "Exposure resolution errors")


DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: Severity.FATAL,
    FaultDomain.VIEW: Severity.ERROR,
    FaultDomain.EXPOSURE: Severity.ERROR,
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    Attributes:
        code: Stable machine-readable identifier (e.g., "UNDEFINED_TEMPLATE")
        message: Human-readable summary
        domain: Fault domain (CONFIG, VIEW, EXPOSURE)
        severity: Fault severity
        metadata: Additional context data

    Example:
        ```python
        raise Fault(
            code="TEMPLATE_NOT_FOUND",
            message="Template 'users/index' could not be found",
            domain=FaultDomain.VIEW,
        )
        ```
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        domain: FaultDomain,
        severity: Optional[Severity] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.domain = domain
        self.severity = severity or DOMAIN_DEFAULTS.get(domain, Severity.ERROR)
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code!r}, "
            f"domain={self.domain.value}, severity={self.severity.value})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize fault to dictionary.

        Returns:
            Dictionary representation suitable for logging/serialization
        """
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "metadata": self.metadata,
        }


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason},
        )


class UndefinedTemplateFault(ConfigFault):
    """A controller was called without a configured template."""

    def __init__(self, controller: Optional[str] = None):
        super().__init__(
            code="UNDEFINED_TEMPLATE",
            message="no template configured"
            + (f" for {controller}" if controller else ""),
            metadata={"controller": controller},
        )


UndefinedTemplateError = UndefinedTemplateFault


# ============================================================================
# VIEW Faults
# ============================================================================

class TemplateNotFoundFault(Fault):
    """Template or partial could not be located in any search path."""

    def __init__(self, name: str, format: str, paths: Iterable[Any]):
        searched = [str(path) for path in paths]
        super().__init__(
            code="TEMPLATE_NOT_FOUND",
            message=(
                f"Template '{name}' for format '{format}' could not be found in paths:\n"
                + "\n".join(f"- {path}" for path in searched)
            ),
            domain=FaultDomain.VIEW,
            metadata={"name": name, "format": format, "paths": searched},
        )
        self.name = name


# ============================================================================
# EXPOSURE Faults
# ============================================================================

class ExposureCycleFault(Fault):
    """Exposures depend on each other in a cycle."""

    def __init__(self, cycle: list[str]):
        cycle_str = " -> ".join(cycle)
        super().__init__(
            code="EXPOSURE_CYCLE",
            message=f"Circular exposure dependency detected: {cycle_str}",
            domain=FaultDomain.EXPOSURE,
            metadata={"cycle": cycle},
        )
