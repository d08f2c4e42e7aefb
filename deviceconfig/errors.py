"""
Exception hierarchy for deviceconfig.

Every error raised by the package derives from :class:`DeviceConfigError`.
Validation failures keep the historical ``"Validation: <property> <reason>"``
message so that consumers parsing error text keep working.
"""

from __future__ import annotations


class DeviceConfigError(Exception):
    """Base class for all deviceconfig errors."""


class ConfigValidationError(DeviceConfigError, ValueError):
    """A configuration record failed validation."""

    def __init__(self, property: str, reason: str) -> None:
        self.property = property
        self.reason   = reason
        super().__init__(f"Validation: {property} {reason}")


class SchemaViolation(ConfigValidationError):
    """A field is missing, has the wrong type, or breaks a constraint."""


class UnrecognizedField(ConfigValidationError):
    """The record carries a key the schema does not declare."""

    def __init__(self, property: str) -> None:
        super().__init__(property, "not recognized")


class InvalidOptions(DeviceConfigError, ValueError):
    """Network options were not a plain mapping."""


class NotAuthenticated(DeviceConfigError):
    """No user session is available."""

    def __init__(self, message: str = "You have to log in") -> None:
        super().__init__(message)


class ApiError(DeviceConfigError, RuntimeError):
    """The management API answered with an error status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class ApplicationNotFound(ApiError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Application not found: {name}", status=404)


class DeviceNotFound(ApiError):
    def __init__(self, uuid: str) -> None:
        self.uuid = uuid
        super().__init__(f"Device not found: {uuid}", status=404)
