"""
Build registration and reconciliation for multi-component image pipelines.

Tracks per-component build metadata for one execution of a build pipeline
(an iteration) and keeps it in sync with a remote registry service.

Features:
    - Concurrent-safe build records keyed by component name
    - Label precedence rules for initial builds, explicit updates and
      reconciliation against a pre-existing remote iteration
    - Idempotent, resumable reconciliation for retried pipeline runs
    - Cancellable registry calls with deadlines
    - Flask coordinator service for workers in separate processes
    - Configurable via environment variables

Example:
    >>> service = InMemoryRegistryService()
    >>> bucket = Bucket("ubuntu-base", "abc123", service, default_labels={"os": "ubuntu"})
    >>> bucket.register_build_for_component("amazon-ebs.ubuntu")
    >>> bucket.create_initial_build_for_iteration("amazon-ebs.ubuntu")
    >>> bucket.update_labels_for_build("amazon-ebs.ubuntu", {"arch": "amd64"})
    >>> bucket.complete_build("amazon-ebs.ubuntu")
"""

__version__ = "0.1.0"

# Import key components for convenience
from .config import Config, parse_labels
from .errors import (
    BuildRegistryError,
    ContextCancelled,
    FingerprintError,
    NotFoundError,
    RegistrationError,
    RemoteError,
    ValidationError,
)
from .labels import merge_labels
from .build import BuildRecord
from .iteration import Iteration
from .context import CallContext
from .service import BuildStatus, CreateResult, InMemoryRegistryService, RegistryService
from .fingerprint import git_head_fingerprint, resolve_fingerprint
from .bucket import Bucket

__all__ = [
    "Config",
    "parse_labels",
    "BuildRegistryError",
    "ContextCancelled",
    "FingerprintError",
    "NotFoundError",
    "RegistrationError",
    "RemoteError",
    "ValidationError",
    "merge_labels",
    "BuildRecord",
    "Iteration",
    "CallContext",
    "BuildStatus",
    "CreateResult",
    "InMemoryRegistryService",
    "RegistryService",
    "git_head_fingerprint",
    "resolve_fingerprint",
    "Bucket",
]
