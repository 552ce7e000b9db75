# tests/test_vault_blueprint.py
import io
import hashlib

import pytest

from conftest import write_file

MB = 1024 * 1024


def _upload(client, account, content, filename="nota.txt", folder=None, header=True):
    data = {"file": (io.BytesIO(content), filename)}
    if folder:
        data["folder"] = folder
    headers = {"X-Account-ID": account} if header else {}
    return client.post(f"/vault/{account}/files", data=data, headers=headers,
                       content_type="multipart/form-data")


@pytest.fixture
def account(vault):
    vault.allocate("acc1", 1)
    return "acc1"


def test_usage_endpoint(client, account):
    r = client.get(f"/vault/{account}/usage")
    assert r.status_code == 200
    body = r.get_json()
    assert body["quota"] == MB
    assert body["used"] == 0
    assert body["files"] == 0


def test_usage_unknown_account_is_404(client, db_session):
    r = client.get("/vault/ghost/usage")
    assert r.status_code == 404


def test_upload_writes_and_tracks(client, account, vault, vault_dirs):
    r = _upload(client, account, b"hello", folder="docs")
    assert r.status_code == 201
    body = r.get_json()
    assert body["path"] == "docs/nota.txt"
    assert body["hash"] == hashlib.sha256(b"hello").hexdigest()
    assert (vault_dirs["storage"] / account / "docs" / "nota.txt").read_bytes() == b"hello"
    assert vault.get_usage(account)["used"] == 5


def test_upload_same_name_gets_unique_path(client, account):
    assert _upload(client, account, b"1").get_json()["path"] == "nota.txt"
    assert _upload(client, account, b"2").get_json()["path"] == "nota (2).txt"


def test_upload_reports_duplicates(client, account, vault):
    vault.allocate("acc2", 1)
    _upload(client, "acc2", b"same-bytes")
    r = _upload(client, account, b"same-bytes")
    assert len(r.get_json()["duplicates"]) == 1


def test_precheck_rejects_oversized_upload(client, account, vault, vault_dirs):
    r = _upload(client, account, b"x" * (MB + 1))
    assert r.status_code == 413
    assert r.get_json()["error"] == "Storage quota exceeded"
    assert not (vault_dirs["storage"] / account / "nota.txt").exists()


def test_authoritative_check_without_header(client, account, vault, vault_dirs):
    # sem cabeçalho o decorator usa a conta da rota; simula corrida deixando a pré-checagem passar
    vault.track_upload(account, "prev.bin", MB - 3)
    import vault_app.decorators as deco
    from unittest import mock
    with mock.patch.object(deco, "resolve_account_id", return_value=None):
        r = _upload(client, account, b"12345", header=False)
    assert r.status_code == 413
    body = r.get_json()
    assert body["required"] == 5 and body["available"] == 3
    assert not (vault_dirs["storage"] / account / "nota.txt").exists()


def test_extension_policy(client, account, app):
    app.config["VAULT_ALLOWED_EXTENSIONS"] = ["pdf"]
    r = _upload(client, account, b"abc", filename="x.exe")
    assert r.status_code == 400
    assert _upload(client, account, b"abc", filename="x.pdf").status_code == 201


def test_delete_file_endpoint(client, account, vault, vault_dirs):
    _upload(client, account, b"hello")
    r = client.delete(f"/vault/{account}/files/nota.txt")
    assert r.status_code == 200
    assert r.get_json()["tracked"] is True
    assert vault.get_usage(account)["used"] == 0
    assert not (vault_dirs["storage"] / account / "nota.txt").exists()

    listing = client.get(f"/vault/{account}/files?deleted=1").get_json()
    assert [f["status"] for f in listing] == ["deleted"]
    assert client.get(f"/vault/{account}/files").get_json() == []


def test_backup_endpoints(client, account, vault):
    write_file(vault.get_storage_path(account), "a.txt", 10)
    r = client.post(f"/vault/{account}/backups")
    assert r.status_code == 201

    listing = client.get(f"/vault/{account}/backups").get_json()
    assert len(listing) == 1
    backup_id = listing[0]["id"]

    r = client.post(f"/vault/{account}/backups/{backup_id}/restore")
    assert r.status_code == 200
    assert r.get_json()["used"] == 10

    assert client.delete(f"/vault/backups/{backup_id}").status_code == 204
    assert client.delete(f"/vault/backups/{backup_id}").status_code == 404


def test_backup_without_storage_is_404(client, account):
    assert client.post(f"/vault/{account}/backups").status_code == 404


def test_parent_account_cannot_reach_other_tenants(client, account, vault, vault_dirs):
    write_file(vault_dirs["storage"] / account, "secret.txt", 100)
    vault.allocate("..", 1)

    r = client.post("/vault/%2E%2E/backups")
    assert r.status_code == 400
    assert not list(vault_dirs["backups"].glob("*.zip"))

    r = client.post("/vault/%2E%2E/files", headers={"X-Account-ID": ".."},
                    data={"file": (io.BytesIO(b"x"), "nota.txt")},
                    content_type="multipart/form-data")
    assert r.status_code == 400
    assert not (vault_dirs["storage"] / "nota.txt").exists()
    assert vault.get_usage("..")["used"] == 0
