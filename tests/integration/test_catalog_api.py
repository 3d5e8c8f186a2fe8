from __future__ import annotations

import json

from fastapi.testclient import TestClient

from awards.core.config import get_settings


def test_edition_lifecycle_and_clone(client: TestClient, admin_headers) -> None:
    source = client.post("/api/editions/", json={"name": "Awards 2023", "year": 2023}, headers=admin_headers).json()
    target = client.post("/api/editions/", json={"name": "Awards 2024", "year": 2024}, headers=admin_headers).json()
    assert source["voting_phase"] == 1
    assert source["ceremony_stage"] == "PAUSED"

    client.post(f"/api/editions/{source['id']}/activate", headers=admin_headers)
    client.post(f"/api/editions/{target['id']}/activate", headers=admin_headers)
    editions = client.get("/api/editions/", headers=admin_headers).json()
    assert [item["name"] for item in editions if item["is_active"]] == ["Awards 2024"]

    renamed = client.put(f"/api/editions/{target['id']}", json={"description": "Fourth season"}, headers=admin_headers)
    assert renamed.json()["description"] == "Fourth season"

    empty_clone = client.post(
        f"/api/editions/{source['id']}/clone", json={"target_edition_id": target["id"]}, headers=admin_headers
    )
    assert empty_clone.status_code == 409

    client.post(f"/api/editions/{source['id']}/categories", json={"name": "Best Teammate"}, headers=admin_headers)
    cloned = client.post(
        f"/api/editions/{source['id']}/clone", json={"target_edition_id": target["id"]}, headers=admin_headers
    )
    assert cloned.json() == {"categories_created": 1, "categories_reused": 0, "nominations_created": 0}
    target_categories = client.get(f"/api/editions/{target['id']}/categories", headers=admin_headers).json()
    assert [item["name"] for item in target_categories] == ["Best Teammate"]

    assert client.delete(f"/api/editions/{source['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/editions/{source['id']}", headers=admin_headers).status_code == 404


def test_voter_can_read_but_not_write_participants(client: TestClient, admin_headers, voter_headers) -> None:
    created = client.post("/api/participants", json={"name": "Ana"}, headers=admin_headers)
    assert created.status_code == 201

    assert client.get("/api/participants", headers=voter_headers).json()[0]["name"] == "Ana"
    assert client.post("/api/participants", json={"name": "Eve"}, headers=voter_headers).status_code == 403


def test_duos_and_duo_nominations(client: TestClient, admin_headers) -> None:
    ana = client.post("/api/participants", json={"name": "Ana"}, headers=admin_headers).json()["id"]
    bruno = client.post("/api/participants", json={"name": "Bruno"}, headers=admin_headers).json()["id"]
    edition = client.post("/api/editions/", json={"name": "Awards 2024"}, headers=admin_headers).json()
    duo_category = client.post(
        f"/api/editions/{edition['id']}/categories", json={"name": "Best Duo", "kind": "duo"}, headers=admin_headers
    ).json()

    duo = client.post(
        "/api/duos", json={"participant1_id": bruno, "participant2_id": ana}, headers=admin_headers
    )
    assert duo.status_code == 201
    assert duo.json()["display_name"] == "Ana & Bruno"
    duplicate = client.post(
        "/api/duos", json={"participant1_id": ana, "participant2_id": bruno}, headers=admin_headers
    )
    assert duplicate.status_code == 409
    same = client.post("/api/duos", json={"participant1_id": ana, "participant2_id": ana}, headers=admin_headers)
    assert same.status_code == 422

    wrong_kind = client.post(
        f"/api/categories/{duo_category['id']}/nominations",
        json={"participant_ids": [ana]},
        headers=admin_headers,
    )
    assert wrong_kind.status_code == 422

    nominated = client.post(
        f"/api/categories/{duo_category['id']}/nominations/duos",
        json={"duo_ids": [duo.json()["id"]]},
        headers=admin_headers,
    )
    assert nominated.status_code == 201
    assert nominated.json()[0]["partner_id"] is not None


def test_participant_image_upload(client: TestClient, admin_headers, s3_client) -> None:
    participant_id = client.post("/api/participants", json={"name": "Ana"}, headers=admin_headers).json()["id"]

    response = client.post(
        f"/api/participants/{participant_id}/image",
        content=b"\x89PNG fake",
        headers={**admin_headers, "Content-Type": "image/png", "X-Upload-Filename": "ana.png"},
    )

    assert response.status_code == 200
    image_url = response.json()["image_url"]
    stored = s3_client.buckets[get_settings().image_bucket]
    assert len(stored) == 1
    assert image_url.endswith(next(iter(stored)))
    assert client.get(f"/api/participants/{participant_id}", headers=admin_headers).json()["image_url"] == image_url

    rejected = client.post(
        f"/api/participants/{participant_id}/image",
        content=b"plain text",
        headers={**admin_headers, "Content-Type": "text/plain"},
    )
    assert rejected.status_code == 415

    empty = client.post(
        f"/api/participants/{participant_id}/image",
        content=b"",
        headers={**admin_headers, "Content-Type": "image/png"},
    )
    assert empty.status_code == 400


def test_json_imports(client: TestClient, admin_headers) -> None:
    edition = client.post("/api/editions/", json={"name": "Awards 2024"}, headers=admin_headers).json()

    participants = client.post(
        "/api/imports/participants",
        content=json.dumps([{"name": "Ana"}, {"name": ""}]),
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert participants.status_code == 200
    assert len(participants.json()["created"]) == 1
    assert participants.json()["errors"][0]["index"] == 1

    categories = client.post(
        "/api/imports/categories",
        content=json.dumps([{"name": "Best Teammate", "edition_id": edition["id"], "order": 1}]),
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert len(categories.json()["created"]) == 1

    not_array = client.post(
        "/api/imports/categories",
        content=b'{"name": "x"}',
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert not_array.status_code == 400


def test_health_endpoints(client: TestClient) -> None:
    assert client.get("/api/healthz").status_code == 200
    assert client.get("/api/readyz").status_code == 200
