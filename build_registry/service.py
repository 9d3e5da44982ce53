"""
Registry service interface and an in-memory implementation.

The Bucket talks to the remote registry only through the RegistryService
protocol. Wire format, transport and authentication belong to concrete
implementations. InMemoryRegistryService keeps all state in process and is
used for local coordinator runs and tests.
"""

import itertools
import logging
import threading
from typing import NamedTuple, Protocol, runtime_checkable

from .context import CallContext

logger = logging.getLogger(__name__)


class CreateResult(NamedTuple):
    """Outcome of a create-or-get call. Already existing is not an error."""

    remote_id: str
    already_existed: bool


class BuildStatus(NamedTuple):
    done: bool
    labels: dict


@runtime_checkable
class RegistryService(Protocol):
    """
    Operations the Bucket requires from the remote registry.

    Implementations raise on failure (network, auth, conflicts other than
    "already exists") and raise ContextCancelled when ``ctx`` is cancelled.
    """

    def create_or_get_iteration(
        self, ctx: CallContext, bucket_slug: str, fingerprint: str
    ) -> CreateResult: ...

    def create_or_get_build(
        self, ctx: CallContext, iteration_id: str, component_type: str
    ) -> CreateResult: ...

    def get_build_status(self, ctx: CallContext, build_id: str) -> BuildStatus: ...

    def update_build_labels(self, ctx: CallContext, build_id: str, labels: dict) -> None: ...


class InMemoryRegistryService:
    """
    Thread-safe, process-local RegistryService.

    Besides serving the protocol it exposes knobs for preparing remote state
    and injecting failures:

        - seed_iteration / seed_build: pre-populate iterations and builds, as
          left behind by an earlier run of the same pipeline
        - fail_operation: make an operation raise, optionally for one subject
        - latency: seconds every call blocks for (honours cancellation)
        - calls: log of (operation, argument) tuples

    Example:
        >>> service = InMemoryRegistryService()
        >>> iteration_id = service.seed_iteration("ubuntu-base", "abc123")
        >>> service.seed_build(iteration_id, "amazon-ebs.ubuntu", labels={"arch": "amd64"})
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self.calls = []
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._iterations = {}  # (bucket_slug, fingerprint) -> iteration id
        self._builds = {}  # (iteration id, component type) -> build id
        self._build_state = {}  # build id -> {"done": bool, "labels": dict}
        self._failures = {}  # (operation, subject or None) -> exception

    # -------------------------------
    # Test and setup knobs
    # -------------------------------

    def seed_iteration(self, bucket_slug: str, fingerprint: str) -> str:
        with self._lock:
            return self._get_or_create_iteration(bucket_slug, fingerprint)[0]

    def seed_build(
        self,
        iteration_id: str,
        component_type: str,
        labels: dict | None = None,
        done: bool = False,
    ) -> str:
        with self._lock:
            build_id, _ = self._get_or_create_build(iteration_id, component_type)
            self._build_state[build_id] = {"done": done, "labels": dict(labels or {})}
            return build_id

    def fail_operation(self, operation: str, error: Exception, subject: str | None = None):
        """
        Make ``operation`` raise ``error``. With ``subject`` set, only calls for
        that fingerprint, component type or build id fail.
        """
        with self._lock:
            self._failures[(operation, subject)] = error

    def clear_failures(self) -> None:
        with self._lock:
            self._failures.clear()

    def build_state(self, build_id: str) -> BuildStatus:
        """Inspect the stored state of a build without going through a context."""
        with self._lock:
            state = self._build_state[build_id]
            return BuildStatus(state["done"], dict(state["labels"]))

    def mark_done(self, build_id: str) -> None:
        with self._lock:
            self._build_state[build_id]["done"] = True

    # -------------------------------
    # RegistryService protocol
    # -------------------------------

    def create_or_get_iteration(self, ctx, bucket_slug, fingerprint):
        self._enter(ctx, "create_or_get_iteration", fingerprint)
        with self._lock:
            iteration_id, existed = self._get_or_create_iteration(bucket_slug, fingerprint)
        logger.debug(
            f"Iteration for {bucket_slug}/{fingerprint}: {iteration_id} (existed={existed})"
        )
        return CreateResult(iteration_id, existed)

    def create_or_get_build(self, ctx, iteration_id, component_type):
        self._enter(ctx, "create_or_get_build", component_type)
        with self._lock:
            if iteration_id not in self._iterations.values():
                raise LookupError(f"iteration {iteration_id} does not exist")
            build_id, existed = self._get_or_create_build(iteration_id, component_type)
        logger.debug(f"Build for {component_type}: {build_id} (existed={existed})")
        return CreateResult(build_id, existed)

    def get_build_status(self, ctx, build_id):
        self._enter(ctx, "get_build_status", build_id)
        with self._lock:
            state = self._build_state.get(build_id)
            if state is None:
                raise LookupError(f"build {build_id} does not exist")
            return BuildStatus(state["done"], dict(state["labels"]))

    def update_build_labels(self, ctx, build_id, labels):
        self._enter(ctx, "update_build_labels", build_id)
        with self._lock:
            state = self._build_state.get(build_id)
            if state is None:
                raise LookupError(f"build {build_id} does not exist")
            if state["done"]:
                raise PermissionError(f"build {build_id} is already done")
            state["labels"] = dict(labels)

    # -------------------------------
    # Internals
    # -------------------------------

    def _enter(self, ctx, operation, argument):
        ctx.check()
        with self._lock:
            self.calls.append((operation, argument))
            error = self._failures.get((operation, argument)) or self._failures.get(
                (operation, None)
            )
        if self.latency:
            ctx.wait(self.latency)
        if error is not None:
            raise error

    def _get_or_create_iteration(self, bucket_slug, fingerprint):
        key = (bucket_slug, fingerprint)
        if key in self._iterations:
            return self._iterations[key], True
        iteration_id = f"iteration-{next(self._ids)}"
        self._iterations[key] = iteration_id
        return iteration_id, False

    def _get_or_create_build(self, iteration_id, component_type):
        key = (iteration_id, component_type)
        if key in self._builds:
            return self._builds[key], True
        build_id = f"build-{next(self._ids)}"
        self._builds[key] = build_id
        self._build_state[build_id] = {"done": False, "labels": {}}
        return build_id, False
