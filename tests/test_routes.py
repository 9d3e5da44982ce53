from __future__ import annotations

import pytest

from build_registry.bucket import Bucket
from build_registry.routes import create_app
from build_registry.service import InMemoryRegistryService


@pytest.fixture
def client(bucket: Bucket):
    bucket.default_labels = {"version": "1.7.0", "based_off": "alpine"}
    app = create_app(bucket)
    app.config["TESTING"] = True
    return app.test_client()


def test_root_reports_iteration(client, bucket: Bucket) -> None:
    resp = client.get("/v1/")
    assert resp.status_code == 200
    assert resp.get_json() == {
        "bucket": "TestBucket",
        "fingerprint": "no-fingerprint-here",
        "iteration_id": "",
        "builds": 0,
    }


def test_build_lifecycle(client, service: InMemoryRegistryService) -> None:
    resp = client.put("/v1/builds/happycloud.image")
    assert resp.status_code == 201
    assert resp.get_json()["labels"] == {}

    resp = client.post("/v1/builds/happycloud.image/initial")
    assert resp.status_code == 201
    build = resp.get_json()
    assert build["labels"] == {"version": "1.7.0", "based_off": "alpine"}
    assert build["remote_id"]

    resp = client.patch("/v1/builds/happycloud.image/labels", json={"source_image": "x"})
    assert resp.status_code == 200
    assert resp.get_json()["labels"] == {
        "version": "1.7.0",
        "based_off": "alpine",
        "source_image": "x",
    }

    resp = client.post("/v1/builds/happycloud.image/complete")
    assert resp.status_code == 200
    assert resp.get_json()["done"] is True
    assert service.build_state(build["remote_id"]).labels["source_image"] == "x"

    resp = client.get("/v1/builds")
    assert list(resp.get_json()) == ["happycloud.image"]


def test_populate_endpoint(client, service: InMemoryRegistryService) -> None:
    iteration_id = service.seed_iteration("TestBucket", "no-fingerprint-here")
    service.seed_build(iteration_id, "happycloud.image", labels={"arch": "linux/386"})
    client.put("/v1/builds/happycloud.image")

    resp = client.post("/v1/iteration/populate?timeout=5")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["iteration_id"] == iteration_id
    assert body["builds"]["happycloud.image"]["labels"] == {
        "version": "1.7.0",
        "based_off": "alpine",
        "arch": "linux/386",
    }


def test_unknown_build_is_404(client) -> None:
    assert client.get("/v1/builds/missing.image").status_code == 404
    resp = client.patch("/v1/builds/missing.image/labels", json={"a": "b"})
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NotFoundError"


def test_unregistered_initial_build_is_409(client) -> None:
    resp = client.post("/v1/builds/happycloud.image/initial")
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "RegistrationError"


def test_invalid_input_is_400(client) -> None:
    assert client.put("/v1/builds/bad;name").status_code == 400
    client.put("/v1/builds/happycloud.image")
    resp = client.patch("/v1/builds/happycloud.image/labels", json=["not", "a", "mapping"])
    assert resp.status_code == 400
    resp = client.post("/v1/builds/happycloud.image/initial?timeout=soon")
    assert resp.status_code == 400


def test_remote_failure_is_502(client, service: InMemoryRegistryService) -> None:
    client.put("/v1/builds/happycloud.image")
    service.fail_operation("create_or_get_iteration", ConnectionError("registry unreachable"))

    resp = client.post("/v1/builds/happycloud.image/initial")

    assert resp.status_code == 502
    assert resp.get_json()["error"] == "RemoteError"
