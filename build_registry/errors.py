"""
Exception types raised by the build registry.
"""


class BuildRegistryError(Exception):
    """Base class for all build registry errors."""


class ValidationError(BuildRegistryError):
    """Raised when a slug, component name, label or fingerprint is malformed."""


class RegistrationError(BuildRegistryError):
    """Raised for operations on a component that was never registered."""


class NotFoundError(BuildRegistryError):
    """Raised for operations on a component with no build record yet."""


class FingerprintError(BuildRegistryError):
    """Raised when no fingerprint can be resolved for the current run."""


class ContextCancelled(BuildRegistryError):
    """Raised by a registry service when the call context is cancelled or expired."""


class RemoteError(BuildRegistryError):
    """
    Wraps any failure returned by the registry service.

    The original exception is chained as ``__cause__``.

    Attributes:
        operation: Name of the service operation that failed
        component: Component type the call was made for, if any
    """

    def __init__(self, operation: str, message: str, component: str | None = None):
        self.operation = operation
        self.component = component
        target = f" for component '{component}'" if component else ""
        super().__init__(f"{operation} failed{target}: {message}")
