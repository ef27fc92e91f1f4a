from __future__ import annotations

import dataclasses
import json
import re

from fastapi.testclient import TestClient


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_get_requires_id(client):
    r = client.get("/api/data")
    assert r.status_code == 400
    assert r.json()["error"] == "INVALID_IDENTIFIER"


def test_get_rejects_path_traversal(client):
    r = client.get("/api/data", params={"id": "../settings"})
    assert r.status_code == 400
    assert r.json()["error"] == "INVALID_IDENTIFIER"


def test_get_unknown_document_returns_empty_list(client):
    r = client.get("/api/data", params={"id": "nothing-here"})
    assert r.status_code == 200
    assert r.json() == []


def test_post_then_get(client):
    doc = [{"name": "Alpha", "kpis": [{"metric": "Revenue", "value": 100}]}]
    r = client.post("/api/data", params={"id": "t1"}, json=doc)
    assert r.status_code == 200
    assert r.json() == {"status": "success"}

    r = client.get("/api/data", params={"id": "t1"})
    assert r.status_code == 200
    assert r.json() == doc


def test_post_malformed_json(client):
    r = client.post(
        "/api/data",
        params={"id": "t1"},
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "MALFORMED_INPUT"


def test_post_validation_failure_reports_actual_and_limit(client):
    r = client.post("/api/data", params={"id": "t1"}, json={str(i): i for i in range(11)})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["message"].startswith("Validation Error:")
    assert body["details"] == {"reason": "TOO_MANY_KEYS", "actual": 11, "limit": 10}

    r = client.post("/api/data", params={"id": "t1"}, json={"a": {"b": {"c": 1}}})
    assert r.status_code == 400
    assert r.json()["details"]["reason"] == "NESTING_TOO_DEEP"

    assert client.get("/api/data", params={"id": "t1"}).json() == []


def test_post_storage_failure_returns_500(client, data_dir):
    (data_dir / "data_t1.json").mkdir()
    r = client.post("/api/data", params={"id": "t1"}, json=[1])
    assert r.status_code == 500
    assert r.json()["error"] == "STORAGE_ERROR"


def test_undo_flow(client):
    client.post("/api/data", params={"id": "t1"}, json=[{"v": "A"}])
    client.post("/api/data", params={"id": "t1"}, json=[{"v": "B"}])

    r = client.post("/api/undo", params={"id": "t1"})
    assert r.status_code == 200
    assert r.json() == {"status": "success"}
    assert client.get("/api/data", params={"id": "t1"}).json() == [{"v": "A"}]

    r = client.post("/api/undo", params={"id": "t1"})
    assert r.status_code == 400
    assert r.json()["error"] == "NO_UNDO_AVAILABLE"


def test_undo_requires_id(client):
    assert client.post("/api/undo").status_code == 400


def test_upload_normalizes_and_is_readable(client):
    r = client.post(
        "/api/upload",
        files={"file": ("table.json", b'[{"a":1},{"b":2}]', "application/json")},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "success"
    assert body["message"] == "File uploaded and saved."
    assert re.fullmatch(r"[0-9a-f]{16}", body["id"])

    r = client.get("/api/data", params={"id": body["id"]})
    assert r.json() == [{"a": 1, "b": None}, {"a": None, "b": 2}]


def test_upload_invalid_json(client):
    r = client.post("/api/upload", files={"file": ("bad.json", b"{nope", "application/json")})
    assert r.status_code == 400
    assert r.json()["error"] == "MALFORMED_INPUT"


def test_upload_invalid_structure(client):
    payload = json.dumps({"a": {"b": {"c": 1}}}).encode()
    r = client.post("/api/upload", files={"file": ("deep.json", payload, "application/json")})
    assert r.status_code == 400
    assert r.json()["error"] == "VALIDATION_ERROR"


def test_upload_without_file_field(client):
    r = client.post("/api/upload", files={"other": ("x.json", b"[]", "application/json")})
    assert r.status_code == 400


def test_upload_too_large(client):
    payload = b"[" + b" " * (1024 * 1024) + b"]"
    r = client.post("/api/upload", files={"file": ("big.json", payload, "application/json")})
    assert r.status_code == 413
    assert r.json()["error"] == "PAYLOAD_TOO_LARGE"


def test_download(client):
    r = client.get("/api/download", params={"id": "missing"})
    assert r.status_code == 404

    assert client.get("/api/download").status_code == 400

    client.post("/api/data", params={"id": "t1"}, json=[{"a": 1}])
    r = client.get("/api/download", params={"id": "t1"})
    assert r.status_code == 200
    assert r.headers["content-disposition"] == "attachment; filename=data_t1.json"
    assert r.text == '[\n  {\n    "a": 1\n  }\n]\n'


def test_max_keys_setting_is_applied(settings):
    import app as app_module

    with TestClient(app_module.create_app(dataclasses.replace(settings, max_keys_per_object=2))) as c:
        r = c.post("/api/data", params={"id": "t1"}, json={"a": 1, "b": 2, "c": 3})
        assert r.status_code == 400
        assert r.json()["details"]["limit"] == 2


def test_startup_seeds_demo_document(settings):
    import app as app_module

    with TestClient(app_module.create_app(dataclasses.replace(settings, seed_demo_data=True))) as c:
        r = c.get("/api/data", params={"id": app_module.DEMO_DOCUMENT_ID})
        assert r.status_code == 200
        assert r.json() == app_module.DEMO_DOCUMENT


def test_deeply_nested_body_is_rejected_as_malformed(client):
    deep = b"[" * 3000 + b"]" * 3000
    r = client.post("/api/data", params={"id": "deep"}, content=deep, headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"] == "MALFORMED_INPUT"

    r = client.post("/api/upload", files={"file": ("deep.json", deep, "application/json")})
    assert r.status_code == 400
    assert r.json()["error"] == "MALFORMED_INPUT"


def test_nan_is_rejected_as_malformed(client):
    r = client.post("/api/data", params={"id": "t1"}, content=b'[{"v": NaN}]', headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"] == "MALFORMED_INPUT"
    assert client.get("/api/data", params={"id": "t1"}).json() == []


def test_demo_seed_over_key_limit_does_not_abort_startup(settings):
    import app as app_module

    seeded = dataclasses.replace(settings, seed_demo_data=True, max_keys_per_object=3)
    with TestClient(app_module.create_app(seeded)) as c:
        assert c.get("/health").status_code == 200
        r = c.get("/api/data", params={"id": app_module.DEMO_DOCUMENT_ID})
        assert r.status_code == 200
        assert r.json() == []
