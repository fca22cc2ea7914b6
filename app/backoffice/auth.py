from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from app.backoffice.audit import record_event
from app.backoffice.db import db_session
from app.backoffice.errors import ObjectNotFoundError, error_body
from app.backoffice.mailer import Mailer
from app.backoffice.models import Customer
from app.backoffice.modules.customers.utils import normalize_email
from app.backoffice.rbac import current_principal, require_auth
from app.backoffice.security import (
    Principal,
    bearer_token,
    create_token,
    decode_token,
    generate_password,
)

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def _token_headers(email: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {create_token(email)}",
        "access-control-expose-headers": "Authorization",
    }


def load_current_principal() -> None:
    """
    Loads g.current_principal from the bearer token.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_principal = None
    if request.path.startswith(("/health", "/healthz")):
        return

    token = bearer_token(request)
    if not token:
        return
    claims = decode_token(token)
    if not claims:
        return

    try:
        s = db_session()
        customer = s.query(Customer).filter(Customer.email == claims["sub"]).one_or_none()
    except SQLAlchemyError as e:
        current_app.logger.error("load_current_principal DB error (treating as anonymous): %s", e)
        return
    if customer is not None:
        g.current_principal = Principal.from_customer(customer)


def send_new_password(s: Session, email: str, mailer: Mailer) -> None:
    """Replace the customer's password with a random one and email it to them."""
    email = normalize_email(email) or ""
    customer = s.query(Customer).filter(Customer.email == email).one_or_none()
    if customer is None:
        raise ObjectNotFoundError("Email not found.", entity_id=email, entity_type="Customer")

    new_password = generate_password()
    customer.password_hash = generate_password_hash(new_password)
    record_event(
        s,
        actor=None,
        action="auth.password_reset",
        entity_type="Customer",
        entity_id=str(customer.id),
    )
    s.flush()
    mailer.send_new_password_email(to_email=customer.email, name=customer.name, new_password=new_password)


@bp.post("/login")
def login():
    payload = request.get_json(silent=True) or {}
    email = normalize_email(payload.get("email")) or ""
    password = payload.get("password") or ""
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        return jsonify(error_body(429, "Too many requests", "Too many login attempts. Please wait 5 minutes.", request.path)), 429

    _record_attempt(ip)

    s = db_session()
    customer = s.query(Customer).filter(Customer.email == email).one_or_none()
    if not customer or not customer.password_hash or not check_password_hash(customer.password_hash, password):
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity_type="Customer",
            entity_id=email,
            reason="Invalid credentials",
        )
        s.commit()
        return jsonify(error_body(401, "Unauthorized", "Invalid email or password.", request.path)), 401

    _login_attempts[ip].clear()
    record_event(s, actor=Principal.from_customer(customer), action="auth.login", entity_type="Customer", entity_id=str(customer.id))
    s.commit()
    return "", 200, _token_headers(customer.email)


@bp.post("/auth/refresh_token")
@require_auth
def refresh_token():
    principal = current_principal()
    return "", 204, _token_headers(principal.email)


@bp.post("/auth/forgot")
def forgot():
    payload = request.get_json(silent=True) or {}
    s = db_session()
    send_new_password(s, payload.get("email") or "", current_app.extensions["mailer"])
    s.commit()
    return "", 204
