from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from build_registry.build import BuildRecord
from build_registry.errors import NotFoundError, RegistrationError, ValidationError
from build_registry.iteration import Iteration


def test_register_component_is_idempotent() -> None:
    iteration = Iteration("abc123")
    iteration.register_component("happycloud.image")
    iteration.store(
        "happycloud.image", BuildRecord("happycloud.image", labels={"version": "1.7.0"})
    )

    iteration.register_component("happycloud.image")

    record, ok = iteration.load("happycloud.image")
    assert ok
    assert record.labels == {"version": "1.7.0"}
    assert len(iteration) == 1


def test_load_missing_component() -> None:
    iteration = Iteration("abc123")
    record, ok = iteration.load("missing.image")
    assert record is None
    assert not ok


def test_store_rejects_mismatched_component_type() -> None:
    iteration = Iteration("abc123")
    with pytest.raises(RegistrationError):
        iteration.store("happycloud.image", BuildRecord("happycloud.image2"))


def test_rejects_invalid_fingerprint() -> None:
    with pytest.raises(ValidationError):
        Iteration("")
    with pytest.raises(ValidationError):
        Iteration("abc def")


@pytest.mark.parametrize(
    "name", ["docker.ubuntu:22.04", "amazon-ebs ubuntu", "source.null[0]", ""]
)
def test_register_component_accepts_any_string(name: str) -> None:
    iteration = Iteration("abc123")
    iteration.register_component(name)

    record, ok = iteration.load(name)
    assert ok
    assert record.component_type == name


def test_records_copy_their_labels() -> None:
    labels = {"version": "1.7.0"}
    record = BuildRecord("happycloud.image", labels=labels)
    labels["version"] = "changed"
    assert record.labels == {"version": "1.7.0"}
    assert record.with_labels(labels).labels is not labels


def test_stored_record_labels_are_read_only() -> None:
    iteration = Iteration("abc123")
    iteration.register_component("happycloud.image")
    iteration.store(
        "happycloud.image",
        BuildRecord("happycloud.image", labels={"version": "1.7.0"}, done=True),
    )

    record, _ = iteration.load("happycloud.image")
    with pytest.raises(TypeError):
        record.labels["version"] = "changed"

    assert iteration.builds()["happycloud.image"].labels == {"version": "1.7.0"}
    assert record.to_dict()["labels"] == {"version": "1.7.0"}


def test_concurrent_registration_loses_no_entries() -> None:
    iteration = Iteration("abc123")
    names = [f"component-{i}.image" for i in range(200)]

    def register_and_store(name: str) -> None:
        iteration.register_component(name)
        record, _ = iteration.load(name)
        iteration.store(name, record.with_labels({"component": name}))

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(register_and_store, names))

    builds = iteration.builds()
    assert len(builds) == 200
    for name in names:
        assert builds[name].component_type == name
        assert builds[name].labels == {"component": name}
    assert iteration.components() == sorted(names)


def test_component_lock_is_stable_per_name() -> None:
    iteration = Iteration("abc123")
    iteration.register_component("a")
    iteration.register_component("b")
    assert iteration.component_lock("a") is iteration.component_lock("a")
    assert iteration.component_lock("a") is not iteration.component_lock("b")


def test_component_lock_for_unknown_name() -> None:
    iteration = Iteration("abc123")

    for i in range(100):
        with pytest.raises(NotFoundError):
            iteration.component_lock(f"ghost{i}")

    assert iteration._component_locks == {}
    assert len(iteration) == 0
