"""
Bucket: the pipeline's handle on the registry for one iteration.

The Bucket owns a single Iteration and the pipeline-wide default labels, and
drives build registration and reconciliation against a RegistryService.

Typical flow:
    1. Driver creates a Bucket and registers every component it will build
    2. Driver either creates an initial remote build per component
       (create_initial_build_for_iteration) or reconciles against an existing
       remote iteration on a retried run (populate_iteration)
    3. Workers merge build-specific labels (update_labels_for_build)
    4. Workers report completion, pushing final labels (complete_build)

Label precedence:
    - Initial build: copy of the bucket default labels
    - Explicit update: caller-supplied labels win over current labels
    - Reconciliation: bucket default labels win over labels already recorded
      remotely, but remote-only keys are kept
"""

import logging
import threading

from .build import BuildRecord
from .context import CallContext
from .errors import NotFoundError, RegistrationError, RemoteError
from .fingerprint import resolve_fingerprint
from .iteration import Iteration
from .labels import merge_labels
from .validation import validate_labels, validate_slug

logger = logging.getLogger(__name__)


class Bucket:
    """
    Local registry state for one pipeline execution.

    Args:
        slug: Bucket identifier, stable across runs of the same pipeline
        fingerprint: Run identifier for this execution
        service: RegistryService implementation
        default_labels: Labels applied to every build unless overridden

    Thread safety:
        All operations may be called concurrently from workers handling
        different components. Operations on the same component are
        serialized by a per-component lock.
    """

    def __init__(self, slug: str, fingerprint: str, service, default_labels: dict | None = None):
        validate_slug(slug)
        validate_labels(default_labels)
        self._slug = slug
        self.default_labels = dict(default_labels or {})
        self.iteration = Iteration(fingerprint)
        self.service = service
        self._iteration_lock = threading.Lock()

    @classmethod
    def from_config(cls, config, service, fingerprint: str | None = None) -> "Bucket":
        """
        Build a Bucket from a Config instance.

        The fingerprint is resolved from the environment variable named by
        BUILD_FINGERPRINT_ENV (or git HEAD) unless passed explicitly.
        """
        if fingerprint is None:
            fingerprint = resolve_fingerprint(config.BUILD_FINGERPRINT_ENV, timeout=config.GIT_TIMEOUT)
        return cls(config.BUCKET_SLUG, fingerprint, service, default_labels=config.BUCKET_LABELS)

    @property
    def slug(self) -> str:
        return self._slug

    @slug.setter
    def slug(self, value: str) -> None:
        with self._iteration_lock:
            if self.iteration.remote_id and value != self._slug:
                raise RegistrationError(
                    f"Cannot rename bucket '{self._slug}' to '{value}': "
                    f"iteration {self.iteration.remote_id} already exists remotely"
                )
            validate_slug(value)
            self._slug = value

    # -------------------------------
    # Operations
    # -------------------------------

    def initialize(self, ctx: CallContext | None = None) -> None:
        """Create or match the remote iteration for this bucket's fingerprint."""
        ctx = ctx or CallContext.background()
        with self._iteration_lock:
            if self.iteration.remote_id:
                return
            self._create_or_get_iteration(ctx)

    def register_build_for_component(self, name: str) -> None:
        """Register a placeholder build for ``name``. Never raises; repeats are no-ops."""
        self.iteration.register_component(name)

    def create_initial_build_for_iteration(self, name: str, ctx: CallContext | None = None) -> None:
        """
        Create (or fetch, if already present) the remote build for ``name`` and
        store it locally with a copy of the bucket default labels.

        Raises:
            RegistrationError: if the component was never registered
            RemoteError: if a registry call fails or ``ctx`` is cancelled
        """
        ctx = ctx or CallContext.background()
        if name not in self.iteration:
            raise RegistrationError(
                f"Component '{name}' is not registered with bucket '{self.slug}'"
            )

        self.initialize(ctx)
        with self.iteration.component_lock(name):
            result = self._call(
                "create_or_get_build",
                name,
                self.service.create_or_get_build,
                ctx,
                self.iteration.remote_id,
                name,
            )
            self._store_initial(name, result.remote_id)

    def update_labels_for_build(self, name: str, overrides: dict | None) -> None:
        """
        Merge ``overrides`` into the labels of the build for ``name``.

        Overrides win over current labels. Nothing is pushed to the registry;
        complete_build does that. Builds already done are left untouched.

        Raises:
            NotFoundError: if there is no build record for ``name``
            ValidationError: if overrides are malformed
        """
        validate_labels(overrides)
        with self.iteration.component_lock(name):
            record, ok = self.iteration.load(name)
            if not ok:
                raise NotFoundError(f"No build found for component '{name}'")
            if record.done:
                logger.warning(f"Build for '{name}' is already done; ignoring label update")
                return
            labels = merge_labels(record.labels, overrides)
            self.iteration.store(name, record.with_labels(labels))
        logger.debug(f"Updated labels for '{name}': {sorted(labels)}")

    def populate_iteration(self, ctx: CallContext | None = None) -> None:
        """
        Reconcile local build records with a possibly pre-existing remote iteration.

        For each registered component:
            - no remote build yet: initial build with the bucket default labels
            - remote build done: record marked done with empty labels
            - remote build in progress: remote labels merged with the bucket
              default labels, defaults winning on conflict

        Raises:
            RemoteError: on any registry failure. Components handled before
                the failure keep their stored state; calling again is safe.
        """
        ctx = ctx or CallContext.background()
        with self._iteration_lock:
            existed = self._create_or_get_iteration(ctx)

        components = self.iteration.components()
        logger.info(
            f"Populating iteration {self.iteration.remote_id} for bucket '{self.slug}' "
            f"({'existing' if existed else 'new'}, {len(components)} components)"
        )
        for name in components:
            with self.iteration.component_lock(name):
                self._reconcile_component(ctx, name)

    def complete_build(self, name: str, ctx: CallContext | None = None) -> None:
        """
        Push the build's labels to the registry and mark it done.

        Completing a build that is already done does nothing.

        Raises:
            NotFoundError: if there is no remotely created build for ``name``
            RemoteError: if the push fails; the build stays not done
        """
        ctx = ctx or CallContext.background()
        with self.iteration.component_lock(name):
            record, ok = self.iteration.load(name)
            if not ok or not record.remote_id:
                raise NotFoundError(f"No remote build found for component '{name}'")
            if record.done:
                logger.info(f"Build for '{name}' already done")
                return
            self._call(
                "update_build_labels",
                name,
                self.service.update_build_labels,
                ctx,
                record.remote_id,
                dict(record.labels),
            )
            self.iteration.store(name, record.mark_done())
        logger.info(f"Completed build for '{name}' ({record.remote_id})")

    def is_build_done(self, name: str) -> bool:
        record, ok = self.iteration.load(name)
        return ok and record.done

    def builds(self) -> dict:
        return self.iteration.builds()

    # -------------------------------
    # Internals
    # -------------------------------

    def _create_or_get_iteration(self, ctx) -> bool:
        result = self._call(
            "create_or_get_iteration",
            None,
            self.service.create_or_get_iteration,
            ctx,
            self.slug,
            self.iteration.fingerprint,
        )
        self.iteration.remote_id = result.remote_id
        logger.debug(
            f"Iteration {result.remote_id} for fingerprint {self.iteration.fingerprint} "
            f"(existed={result.already_existed})"
        )
        return result.already_existed

    def _reconcile_component(self, ctx, name):
        result = self._call(
            "create_or_get_build",
            name,
            self.service.create_or_get_build,
            ctx,
            self.iteration.remote_id,
            name,
        )
        if not result.already_existed:
            self._store_initial(name, result.remote_id)
            return

        status = self._call(
            "get_build_status", name, self.service.get_build_status, ctx, result.remote_id
        )
        if status.done:
            record = BuildRecord(component_type=name, done=True, remote_id=result.remote_id)
            logger.info(f"Build for '{name}' already done upstream; skipping")
        else:
            labels = merge_labels(status.labels, self.default_labels)
            record = BuildRecord(component_type=name, labels=labels, remote_id=result.remote_id)
            logger.info(f"Resuming build for '{name}' with {len(labels)} labels")
        self.iteration.store(name, record)

    def _store_initial(self, name, remote_id):
        record = BuildRecord(
            component_type=name, labels=dict(self.default_labels), remote_id=remote_id
        )
        self.iteration.store(name, record)
        logger.info(f"Initial build for '{name}' created ({remote_id})")

    def _call(self, operation, component, fn, ctx, *args):
        try:
            return fn(ctx, *args)
        except Exception as e:
            logger.error(f"Registry call {operation} failed: {e}")
            raise RemoteError(operation, str(e), component=component) from e
