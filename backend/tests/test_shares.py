from __future__ import annotations

import io
from urllib.parse import urlparse

from zenith.extensions import db
from zenith.models import Permission
from zenith.shares import service as share_service


def _upload(client, headers, name: str = "draft.txt", content: bytes = b"draft content") -> str:
    response = client.post(
        "/files/upload",
        data={"file": (io.BytesIO(content), name)},
        headers=headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 201
    return response.get_json()["file"]["id"]


def test_share_list_update_and_revoke(client, app, alice_headers, bob_headers):
    file_id = _upload(client, alice_headers)

    share = client.post(
        f"/files/{file_id}/share",
        json={"email": "bob@example.com", "role": "viewer"},
        headers=alice_headers,
    )
    assert share.status_code == 201
    permission = share.get_json()["permission"]
    assert permission["role"] == "viewer"

    listing = client.get(f"/files/{file_id}/permissions", headers=alice_headers)
    assert listing.status_code == 200
    rows = listing.get_json()
    assert len(rows) == 1
    assert rows[0]["email"] == "bob@example.com"

    # Only the owner manages grants.
    assert client.get(f"/files/{file_id}/permissions", headers=bob_headers).status_code == 404
    forbidden = client.patch(f"/permissions/{permission['id']}", json={"role": "editor"}, headers=bob_headers)
    assert forbidden.status_code == 404

    updated = client.patch(f"/permissions/{permission['id']}", json={"role": "editor"}, headers=alice_headers)
    assert updated.status_code == 200
    assert updated.get_json()["permission"]["role"] == "editor"

    bad_role = client.patch(f"/permissions/{permission['id']}", json={"role": "owner"}, headers=alice_headers)
    assert bad_role.status_code == 400

    revoked = client.delete(f"/permissions/{permission['id']}", headers=alice_headers)
    assert revoked.status_code == 200
    with app.app_context():
        assert Permission.query.count() == 0


def test_self_share_is_rejected_for_every_role(client, alice_headers):
    file_id = _upload(client, alice_headers)

    for role in ("viewer", "editor"):
        response = client.post(
            f"/files/{file_id}/share",
            json={"email": "alice@example.com", "role": role},
            headers=alice_headers,
        )
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "INVALID_SHARE"


def test_duplicate_share_conflicts_and_keeps_first_grant(client, app, alice_headers):
    file_id = _upload(client, alice_headers)

    first = client.post(
        f"/files/{file_id}/share",
        json={"email": "bob@example.com", "role": "viewer"},
        headers=alice_headers,
    )
    assert first.status_code == 201

    second = client.post(
        f"/files/{file_id}/share",
        json={"email": "bob@example.com", "role": "editor"},
        headers=alice_headers,
    )
    assert second.status_code == 409

    with app.app_context():
        rows = Permission.query.all()
        assert len(rows) == 1
        assert rows[0].role.value == "viewer"


def test_share_validation(client, alice_headers, bob_headers):
    file_id = _upload(client, alice_headers)

    unknown_user = client.post(
        f"/files/{file_id}/share",
        json={"email": "ghost@example.com", "role": "viewer"},
        headers=alice_headers,
    )
    assert unknown_user.status_code == 404
    assert unknown_user.get_json()["error"]["code"] == "USER_NOT_FOUND"

    bad_role = client.post(
        f"/files/{file_id}/share",
        json={"email": "bob@example.com", "role": "admin"},
        headers=alice_headers,
    )
    assert bad_role.status_code == 400

    not_owner = client.post(
        f"/files/{file_id}/share",
        json={"email": "alice@example.com", "role": "viewer"},
        headers=bob_headers,
    )
    assert not_owner.status_code == 404


def test_shareable_link_downloads_bytes(client, app, alice_headers, bob_headers):
    file_id = _upload(client, alice_headers, name="shared.txt", content=b"shared bytes")

    assert client.get(f"/files/{file_id}/shareable-link", headers=bob_headers).status_code == 404

    share = client.post(
        f"/files/{file_id}/share",
        json={"email": "bob@example.com", "role": "viewer"},
        headers=alice_headers,
    )
    assert share.status_code == 201

    link = client.get(f"/files/{file_id}/shareable-link", headers=bob_headers)
    assert link.status_code == 200
    payload = link.get_json()
    assert payload["expires_in"] == app.config["SIGNED_URL_EXPIRES_SECONDS"]

    path = urlparse(payload["signedUrl"]).path
    download = client.get(path)
    assert download.status_code == 200
    assert download.data == b"shared bytes"
    download.close()

    tampered = client.get(path + "x")
    assert tampered.status_code == 404

    app.config["SIGNED_URL_EXPIRES_SECONDS"] = -1
    expired = client.get(path)
    assert expired.status_code == 410
    assert expired.get_json()["error"]["code"] == "LINK_EXPIRED"


def test_grantee_keeps_no_access_after_revoke(client, app, alice_headers, bob_headers):
    file_id = _upload(client, alice_headers)
    share = client.post(
        f"/files/{file_id}/share",
        json={"email": "bob@example.com", "role": "editor"},
        headers=alice_headers,
    )
    permission_id = share.get_json()["permission"]["id"]

    with app.app_context():
        assert db.session.get(Permission, permission_id).role.can_edit is True

    assert client.delete(f"/permissions/{permission_id}", headers=alice_headers).status_code == 200
    assert client.get(f"/files/{file_id}/shareable-link", headers=bob_headers).status_code == 404


def test_concurrent_grant_hits_unique_constraint(client, app, alice_headers, monkeypatch):
    file_id = _upload(client, alice_headers)
    first = client.post(
        f"/files/{file_id}/share",
        json={"email": "bob@example.com", "role": "viewer"},
        headers=alice_headers,
    )
    assert first.status_code == 201

    # The existing row is invisible to the pre-check, as for a grant committed in between.
    monkeypatch.setattr(share_service, "file_permission", lambda user, file_id: None)

    racing = client.post(
        f"/files/{file_id}/share",
        json={"email": "bob@example.com", "role": "editor"},
        headers=alice_headers,
    )
    assert racing.status_code == 409
    assert racing.get_json()["error"]["code"] == "ALREADY_SHARED"

    with app.app_context():
        rows = Permission.query.all()
        assert len(rows) == 1
        assert rows[0].role.value == "viewer"
