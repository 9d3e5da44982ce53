"""
Iteration: the set of builds produced by one execution of the pipeline.
"""

import logging
import threading

from .build import BuildRecord
from .errors import NotFoundError, RegistrationError
from .validation import validate_fingerprint

logger = logging.getLogger(__name__)


class Iteration:
    """
    Concurrent-safe registry of build records keyed by component name.

    The internal lock is held only for the dictionary operation itself and
    never across registry calls, so workers handling different components do
    not wait on each other. Callers that read, merge and write back a single
    component's record hold ``component_lock(name)`` for that sequence.

    Component names are arbitrary strings; any string can be registered.

    Attributes:
        fingerprint: Run identifier supplied by the caller (e.g., git SHA)
        remote_id: Iteration identifier assigned by the registry, empty until
            the iteration has been created or matched remotely
    """

    def __init__(self, fingerprint: str):
        validate_fingerprint(fingerprint)
        self.fingerprint = fingerprint
        self.remote_id = ""
        self._builds = {}
        self._component_locks = {}
        self._lock = threading.Lock()

    def register_component(self, name: str) -> None:
        """Insert a placeholder record for ``name`` unless one already exists."""
        with self._lock:
            if name in self._builds:
                return
            self._builds[name] = BuildRecord(component_type=name)
            self._component_locks[name] = threading.Lock()
        logger.debug(f"Registered component {name}")

    def load(self, name: str) -> tuple[BuildRecord | None, bool]:
        with self._lock:
            record = self._builds.get(name)
        return record, record is not None

    def store(self, name: str, record: BuildRecord) -> None:
        if record.component_type != name:
            raise RegistrationError(
                f"Cannot store build for '{record.component_type}' under component '{name}'"
            )
        with self._lock:
            self._builds[name] = record
            self._component_locks.setdefault(name, threading.Lock())

    def component_lock(self, name: str) -> threading.Lock:
        """
        Return the lock serializing writers of ``name``.

        Raises:
            NotFoundError: if ``name`` has no build record
        """
        with self._lock:
            lock = self._component_locks.get(name)
        if lock is None:
            raise NotFoundError(f"No build found for component '{name}'")
        return lock

    def components(self) -> list[str]:
        with self._lock:
            return sorted(self._builds)

    def builds(self) -> dict:
        """Snapshot of all build records keyed by component name."""
        with self._lock:
            return dict(self._builds)

    def __len__(self):
        with self._lock:
            return len(self._builds)

    def __contains__(self, name):
        with self._lock:
            return name in self._builds
