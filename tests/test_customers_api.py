import io
from pathlib import Path
from urllib.parse import urlparse

from PIL import Image

from app.backoffice.db import session_scope
from app.backoffice.models import Customer, Order

from conftest import ADMIN_ID, MARIA_ID, auth_headers, registration_payload


def _admin(app):
    return auth_headers(app, "admin@example.com")


def _maria(app):
    return auth_headers(app, "maria@example.com")


def test_register_customer(app, client):
    r = client.post("/customers", json=registration_payload())
    assert r.status_code == 201
    location = r.headers["Location"]
    new_id = int(location.rstrip("/").rsplit("/", 1)[1])

    with session_scope(app) as s:
        c = s.get(Customer, new_id)
        assert c.email == "ana@x.com"
        assert len(c.addresses) == 1

    # the new customer can log in and read their own record
    r = client.post("/login", json={"email": "ana@x.com", "password": "secret"})
    assert r.status_code == 200
    r = client.get(f"/customers/{new_id}", headers={"Authorization": r.headers["Authorization"]})
    assert r.status_code == 200
    body = r.json
    assert body["phones"] == ["111"]
    assert body["customer_type"] == "Individual"
    assert body["profiles"] == ["ROLE_CLIENT"]
    assert body["addresses"][0]["city"]["name"] == "Uberlândia"
    assert "password_hash" not in body


def test_register_validation_errors(client):
    r = client.post("/customers", json=registration_payload(name="Ana", email="maria@example.com", tax_id="1"))
    assert r.status_code == 422
    fields = {e["field"] for e in r.json["errors"]}
    assert fields == {"name", "email", "tax_id"}


def test_get_requires_auth(client):
    assert client.get(f"/customers/{MARIA_ID}").status_code == 401


def test_auth_failures_use_the_common_error_body(app, client):
    r = client.get(f"/customers/{MARIA_ID}")
    assert r.status_code == 401
    assert set(r.json) == {"timestamp", "status", "error", "message", "path"}
    assert r.json["path"] == f"/customers/{MARIA_ID}"

    r = client.get("/customers", headers=_maria(app))
    assert r.status_code == 403
    assert set(r.json) == {"timestamp", "status", "error", "message", "path"}
    assert (r.json["status"], r.json["path"]) == (403, "/customers")


def test_get_self_and_others(app, client):
    assert client.get(f"/customers/{MARIA_ID}", headers=_maria(app)).status_code == 200
    r = client.get(f"/customers/{ADMIN_ID}", headers=_maria(app))
    assert r.status_code == 403
    assert r.json["message"] == "Access denied"
    assert client.get(f"/customers/{MARIA_ID}", headers=_admin(app)).status_code == 200


def test_get_by_email(app, client):
    r = client.get("/customers/email", query_string={"value": "maria@example.com"}, headers=_maria(app))
    assert r.status_code == 200
    assert r.json["id"] == MARIA_ID
    r = client.get("/customers/email", query_string={"value": "admin@example.com"}, headers=_maria(app))
    assert r.status_code == 403


def test_get_missing_as_admin(app, client):
    r = client.get("/customers/999", headers=_admin(app))
    assert r.status_code == 404
    assert "999" in r.json["message"]


def test_update_self(app, client):
    r = client.put(
        f"/customers/{MARIA_ID}",
        json={"name": "Maria Souza", "email": "maria.souza@example.com"},
        headers=_maria(app),
    )
    assert r.status_code == 204
    with session_scope(app) as s:
        c = s.get(Customer, MARIA_ID)
        assert (c.name, c.email) == ("Maria Souza", "maria.souza@example.com")


def test_update_someone_else_forbidden(app, client):
    r = client.put(
        f"/customers/{ADMIN_ID}",
        json={"name": "Somebody Else", "email": "admin2@example.com"},
        headers=_maria(app),
    )
    assert r.status_code == 403


def test_update_someone_else_is_forbidden_before_validation(app, client):
    # an invalid body for another customer's record must not reveal which emails exist
    r = client.put(
        f"/customers/{ADMIN_ID}",
        json={"name": "Somebody Else", "email": "maria@example.com"},
        headers=_maria(app),
    )
    assert r.status_code == 403
    assert "errors" not in r.json


def test_update_missing_customer(app, client):
    r = client.put("/customers/999", json={"name": "", "email": ""}, headers=_admin(app))
    assert r.status_code == 404


def test_update_validation(app, client):
    r = client.put(f"/customers/{MARIA_ID}", json={"name": "", "email": "admin@example.com"}, headers=_maria(app))
    assert r.status_code == 422
    assert {e["field"] for e in r.json["errors"]} == {"name", "email"}


def test_delete_is_admin_only(app, client):
    assert client.delete(f"/customers/{MARIA_ID}").status_code == 401
    assert client.delete(f"/customers/{MARIA_ID}", headers=_maria(app)).status_code == 403
    assert client.delete(f"/customers/{MARIA_ID}", headers=_admin(app)).status_code == 204
    with session_scope(app) as s:
        assert s.get(Customer, MARIA_ID) is None


def test_delete_with_orders_is_rejected(app, client):
    with session_scope(app) as s:
        s.add(Order(customer_id=MARIA_ID))
    r = client.delete(f"/customers/{MARIA_ID}", headers=_admin(app))
    assert r.status_code == 400
    assert r.json["error"] == "Data integrity"
    with session_scope(app) as s:
        assert s.get(Customer, MARIA_ID) is not None


def test_list_is_admin_only(app, client):
    assert client.get("/customers", headers=_maria(app)).status_code == 403
    r = client.get("/customers", headers=_admin(app))
    assert r.status_code == 200
    assert r.json == [
        {"id": ADMIN_ID, "name": "Administrator", "email": "admin@example.com"},
        {"id": MARIA_ID, "name": "Maria Silva", "email": "maria@example.com"},
    ]


def test_page_defaults(app, client):
    r = client.get("/customers/page", headers=_admin(app))
    assert r.status_code == 200
    assert r.json["size"] == 24
    assert r.json["total_elements"] == 2
    assert [c["name"] for c in r.json["content"]] == ["Administrator", "Maria Silva"]


def test_page_arguments(app, client):
    r = client.get(
        "/customers/page",
        query_string={"page": 0, "linesPerPage": 1, "orderBy": "name", "direction": "DESC"},
        headers=_admin(app),
    )
    assert r.status_code == 200
    assert [c["name"] for c in r.json["content"]] == ["Maria Silva"]
    assert r.json["total_pages"] == 2
    assert r.json["first"] is True
    assert r.json["last"] is False


def test_page_invalid_direction(app, client):
    r = client.get("/customers/page", query_string={"direction": "INVALID"}, headers=_admin(app))
    assert r.status_code == 400
    assert r.json["error"] == "Invalid argument"


def test_page_non_numeric_page(app, client):
    r = client.get("/customers/page", query_string={"page": "two"}, headers=_admin(app))
    assert r.status_code == 400


def _jpeg(width: int, height: int) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(buf, format="JPEG")
    return buf.getvalue()


def test_picture_upload_requires_auth(client):
    r = client.post("/customers/picture", data={"file": (io.BytesIO(_jpeg(10, 10)), "me.jpg")})
    assert r.status_code == 401


def test_picture_upload_stores_square_jpeg(app, client):
    r = client.post(
        "/customers/picture",
        data={"file": (io.BytesIO(_jpeg(400, 300)), "me.jpg")},
        headers=_maria(app),
        content_type="multipart/form-data",
    )
    assert r.status_code == 201
    location = r.headers["Location"]
    assert location.endswith(f"/cp{MARIA_ID}.jpg")

    stored = Path(urlparse(location).path)
    assert stored.exists()
    with Image.open(stored) as img:
        assert img.size == (200, 200)


def test_picture_upload_rejects_non_images(app, client):
    r = client.post(
        "/customers/picture",
        data={"file": (io.BytesIO(b"hello"), "notes.txt")},
        headers=_maria(app),
        content_type="multipart/form-data",
    )
    assert r.status_code == 400
    assert r.json["error"] == "File error"


def test_picture_upload_without_file(app, client):
    r = client.post("/customers/picture", data={}, headers=_maria(app), content_type="multipart/form-data")
    assert r.status_code == 400


def test_picture_upload_rejects_oversized_images(app, client, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    r = client.post(
        "/customers/picture",
        data={"file": (io.BytesIO(_jpeg(100, 100)), "big.jpg")},
        headers=_maria(app),
        content_type="multipart/form-data",
    )
    assert r.status_code == 400
    assert r.json["error"] == "File error"
