from __future__ import annotations

from flask import Blueprint, jsonify, request, url_for

from app.backoffice.constants import (
    DEFAULT_DIRECTION,
    DEFAULT_LINES_PER_PAGE,
    DEFAULT_ORDER_BY,
    DEFAULT_PAGE,
    Profile,
)
from app.backoffice.db import db_session
from app.backoffice.errors import FileError, InvalidArgumentError, error_body
from app.backoffice.modules.customers.service import (
    CustomerDirectory,
    PayloadShape,
    ValidationError,
    customer_detail_to_dict,
    customer_to_dict,
    page_to_dict,
    validate_customer_payload,
)
from app.backoffice.rbac import current_principal, require_auth, require_role

bp = Blueprint("customers", __name__)


def _validation_failed(errs: list[ValidationError]):
    body = error_body(422, "Validation error", "One or more fields are invalid.", request.path)
    body["errors"] = [{"field": e.field, "message": e.message} for e in errs]
    return jsonify(body), 422


def _int_arg(name: str, default: int) -> int:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgumentError(f"{name} must be a number.") from None


@bp.get("/customers/<int:customer_id>")
@require_auth
def customer_get(customer_id: int):
    s = db_session()
    c = CustomerDirectory.from_app(s).find(current_principal(), customer_id)
    return jsonify(customer_detail_to_dict(c))


@bp.get("/customers/email")
@require_auth
def customer_by_email():
    s = db_session()
    c = CustomerDirectory.from_app(s).find_by_email(current_principal(), request.args.get("value") or "")
    return jsonify(customer_detail_to_dict(c))


@bp.post("/customers")
def customer_create():
    s = db_session()
    payload = request.get_json(silent=True) or {}
    errs = validate_customer_payload(s, payload, PayloadShape.NEW)
    if errs:
        return _validation_failed(errs)

    directory = CustomerDirectory.from_app(s)
    c = directory.insert(directory.from_payload(payload, PayloadShape.NEW), actor=current_principal())
    s.commit()
    location = url_for("customers.customer_get", customer_id=c.id, _external=True)
    return "", 201, {"Location": location}


@bp.put("/customers/<int:customer_id>")
@require_auth
def customer_update(customer_id: int):
    s = db_session()
    principal = current_principal()
    directory = CustomerDirectory.from_app(s)
    # access and existence first, so field errors never leak for other customers
    directory.find(principal, customer_id)

    payload = request.get_json(silent=True) or {}
    errs = validate_customer_payload(s, payload, PayloadShape.UPDATE, customer_id=customer_id)
    if errs:
        return _validation_failed(errs)

    customer = directory.from_payload({**payload, "id": customer_id}, PayloadShape.UPDATE)
    directory.update(principal, customer)
    s.commit()
    return "", 204


@bp.delete("/customers/<int:customer_id>")
@require_role(Profile.ADMIN)
def customer_delete(customer_id: int):
    s = db_session()
    CustomerDirectory.from_app(s).delete(current_principal(), customer_id)
    s.commit()
    return "", 204


@bp.get("/customers")
@require_role(Profile.ADMIN)
def customers_list():
    s = db_session()
    return jsonify([customer_to_dict(c) for c in CustomerDirectory.from_app(s).find_all()])


@bp.get("/customers/page")
@require_role(Profile.ADMIN)
def customers_page():
    s = db_session()
    page = CustomerDirectory.from_app(s).find_page(
        _int_arg("page", DEFAULT_PAGE),
        _int_arg("linesPerPage", DEFAULT_LINES_PER_PAGE),
        (request.args.get("orderBy") or DEFAULT_ORDER_BY).strip(),
        (request.args.get("direction") or DEFAULT_DIRECTION).strip(),
    )
    return jsonify(page_to_dict(page))


@bp.post("/customers/picture")
@require_auth
def customer_picture_upload():
    f = request.files.get("file")
    if f is None or not f.filename:
        raise FileError("No file uploaded.")
    s = db_session()
    uri = CustomerDirectory.from_app(s).upload_profile_picture(current_principal(), f.read())
    return "", 201, {"Location": uri}
