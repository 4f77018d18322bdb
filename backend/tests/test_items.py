from __future__ import annotations

import io

import pytest

from zenith.items import routes as item_routes


def _upload(client, headers, name: str, folder_id: str | None = None) -> str:
    data = {"file": (io.BytesIO(b"item content"), name)}
    if folder_id is not None:
        data["folder_id"] = folder_id
    response = client.post("/files/upload", data=data, headers=headers, content_type="multipart/form-data")
    assert response.status_code == 201
    return response.get_json()["file"]["id"]


def _folder(client, headers, name: str, parent_id: str | None = None) -> str:
    response = client.post("/folders", json={"name": name, "parent_id": parent_id}, headers=headers)
    assert response.status_code == 201
    return response.get_json()["folder"]["id"]


def test_browse_lists_children_folders_first(client, alice_headers, bob_headers):
    docs_id = _folder(client, alice_headers, "docs")
    _folder(client, alice_headers, "archive")
    _upload(client, alice_headers, "a.txt")
    _upload(client, alice_headers, "nested.txt", docs_id)
    _upload(client, bob_headers, "bobs.txt")

    root = client.get("/browse", headers=alice_headers)
    assert root.status_code == 200
    payload = root.get_json()
    assert [item["name"] for item in payload["folders"]] == ["archive", "docs"]
    assert [item["name"] for item in payload["files"]] == ["a.txt"]
    assert payload["files"][0]["type"] == "file"
    assert payload["folders"][0]["item_id"] == payload["folders"][0]["id"]

    nested = client.get(f"/browse?folderId={docs_id}", headers=alice_headers).get_json()
    assert nested["folders"] == []
    assert [item["name"] for item in nested["files"]] == ["nested.txt"]

    page = client.get("/browse?limit=2&offset=1", headers=alice_headers).get_json()
    assert [item["name"] for item in page["folders"]] == ["docs"]
    assert [item["name"] for item in page["files"]] == ["a.txt"]


def test_browse_rejects_foreign_trashed_and_bad_params(client, alice_headers, bob_headers):
    folder_id = _folder(client, alice_headers, "secret")

    assert client.get(f"/browse?folderId={folder_id}", headers=bob_headers).status_code == 404

    assert client.delete(f"/folders/{folder_id}", headers=alice_headers).status_code == 200
    assert client.get(f"/browse?folderId={folder_id}", headers=alice_headers).status_code == 404

    assert client.get("/browse?limit=0", headers=alice_headers).status_code == 400
    assert client.get("/browse?limit=501", headers=alice_headers).status_code == 400
    assert client.get("/browse?offset=abc", headers=alice_headers).status_code == 400


def test_search_matches_all_tokens(client, alice_headers, bob_headers):
    _upload(client, alice_headers, "quarterly report.pdf")
    _upload(client, alice_headers, "report draft.txt")
    _folder(client, alice_headers, "reports 2024")
    _upload(client, bob_headers, "quarterly report.pdf")

    results = client.get("/search?q=quarterly%20report", headers=alice_headers)
    assert results.status_code == 200
    payload = results.get_json()
    assert [item["name"] for item in payload["files"]] == ["quarterly report.pdf"]
    assert payload["folders"] == []

    broad = client.get("/search?q=report", headers=alice_headers).get_json()
    assert len(broad["files"]) == 2
    assert [item["name"] for item in broad["folders"]] == ["reports 2024"]


def test_search_treats_wildcards_literally(client, alice_headers):
    _upload(client, alice_headers, "plain.txt")

    results = client.get("/search?q=%25", headers=alice_headers).get_json()
    assert results == {"folders": [], "files": []}


def test_blank_search_is_rejected_before_lookup(client, alice_headers, monkeypatch):
    def unexpected_lookup():
        pytest.fail("user lookup should not run for a blank query")

    monkeypatch.setattr(item_routes, "current_user", unexpected_lookup)

    blank = client.get("/search?q=%20%20", headers=alice_headers)
    assert blank.status_code == 400
    assert blank.get_json()["error"]["code"] == "INVALID_QUERY"

    assert client.get("/search", headers=alice_headers).status_code == 400


def test_trash_listing(client, alice_headers):
    file_id = _upload(client, alice_headers, "old.txt")
    folder_id = _folder(client, alice_headers, "old stuff")
    _upload(client, alice_headers, "current.txt")

    client.delete(f"/files/{file_id}", headers=alice_headers)
    client.delete(f"/folders/{folder_id}", headers=alice_headers)

    trash = client.get("/trash", headers=alice_headers).get_json()
    assert [item["id"] for item in trash["files"]] == [file_id]
    assert [item["id"] for item in trash["folders"]] == [folder_id]

    root = client.get("/browse", headers=alice_headers).get_json()
    assert [item["name"] for item in root["files"]] == ["current.txt"]
    assert root["folders"] == []


def test_recent_includes_owned_and_shared_files(client, app, alice_headers, bob_headers):
    own_id = _upload(client, bob_headers, "mine.txt")
    shared_id = _upload(client, alice_headers, "from-alice.txt")
    _upload(client, alice_headers, "private.txt")

    share = client.post(
        f"/files/{shared_id}/share",
        json={"email": "bob@example.com", "role": "viewer"},
        headers=alice_headers,
    )
    assert share.status_code == 201

    recent = client.get("/recent", headers=bob_headers)
    assert recent.status_code == 200
    items = {item["id"]: item for item in recent.get_json()}
    assert set(items) == {own_id, shared_id}
    assert items[own_id]["owner_email"] == "bob@example.com"
    assert items[shared_id]["owner_email"] == "alice@example.com"

    app.config["RECENT_FILES_LIMIT"] = 1
    assert len(client.get("/recent", headers=bob_headers).get_json()) == 1


def test_shared_with_me_lists_files_with_role(client, alice_headers, bob_headers):
    file_id = _upload(client, alice_headers, "team.txt")
    trashed_id = _upload(client, alice_headers, "gone.txt")
    for shared in (file_id, trashed_id):
        response = client.post(
            f"/files/{shared}/share",
            json={"email": "bob@example.com", "role": "editor"},
            headers=alice_headers,
        )
        assert response.status_code == 201
    client.delete(f"/files/{trashed_id}", headers=alice_headers)

    shared = client.get("/shared-with-me", headers=bob_headers)
    assert shared.status_code == 200
    payload = shared.get_json()
    assert payload["folders"] == []
    assert len(payload["files"]) == 1
    assert payload["files"][0]["id"] == file_id
    assert payload["files"][0]["role"] == "editor"
    assert payload["files"][0]["owner_email"] == "alice@example.com"

    assert client.get("/shared-with-me", headers=alice_headers).get_json() == {"files": [], "folders": []}
