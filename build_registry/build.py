"""
Build record for a single pipeline component.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType


@dataclass(frozen=True)
class BuildRecord:
    """
    Metadata for one component's build within an iteration.

    Records are immutable; updates produce a new record via ``with_labels`` or
    ``dataclasses.replace`` which is then stored back on the iteration. The
    labels are copied on construction and exposed as a read-only mapping, so
    two records never share them and a stored record cannot be changed in place.

    Attributes:
        component_type: Component name, e.g. "amazon-ebs.ubuntu"
        labels: Effective build labels (read-only mapping)
        done: True once the registry reports the build as finished
        remote_id: Build identifier assigned by the registry, empty until created
    """

    component_type: str
    labels: dict = field(default_factory=dict)
    done: bool = False
    remote_id: str = ""

    def __post_init__(self):
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels or {})))

    def with_labels(self, labels: dict) -> "BuildRecord":
        return replace(self, labels=labels)

    def mark_done(self) -> "BuildRecord":
        return replace(self, done=True)

    def to_dict(self) -> dict:
        """Serializable view used by the HTTP surface and log output."""
        return {
            "component_type": self.component_type,
            "labels": dict(self.labels),
            "done": self.done,
            "remote_id": self.remote_id,
        }
