"""
CUSTOMER DIRECTORY
==================

Owns customer records and their primary address.

Operation             | Authorization                      | Writes
----------------------|------------------------------------|---------------------------
find / find_by_email  | ADMIN, or the customer themself    | none
insert                | none (registration is public)      | customer, then address[0]
update                | same as find                       | name + email only
delete                | same as find                       | customer (+ cascades)
find_all / find_page  | enforced by the blueprint (ADMIN)  | none
from_payload          | none (pure construction)           | none
upload_profile_picture| any authenticated principal        | object storage only

The principal is always passed in explicitly; nothing here reads request state.
Both writes of `insert` run in the caller's transaction: the caller commits once,
so a failure between them rolls both back instead of leaving a customer with no address.
"""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

from app.backoffice.audit import record_event
from app.backoffice.constants import (
    CUSTOMER_SORTABLE_FIELDS,
    PROFILE_IMAGE_CONTENT_TYPE,
    PROFILE_IMAGE_EXTENSION,
    CustomerType,
    Profile,
    SortDirection,
)
from app.backoffice.errors import (
    AuthorizationError,
    DataIntegrityError,
    InvalidArgumentError,
    ObjectNotFoundError,
)
from app.backoffice.images import ImageService
from app.backoffice.modules.customers.models import Address, Customer
from app.backoffice.modules.customers.utils import (
    clean,
    is_valid_cnpj,
    is_valid_cpf,
    is_valid_email,
    normalize_email,
)
from app.backoffice.modules.locations.models import City
from app.backoffice.security import Principal
from app.backoffice.storage import Storage

logger = logging.getLogger(__name__)

ENTITY_TYPE = "Customer"


class PayloadShape(enum.Enum):
    UPDATE = "update"  # name + email
    NEW = "new"  # full registration


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


@dataclass(frozen=True)
class Page:
    items: list[Customer]
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    @property
    def is_last(self) -> bool:
        return self.page >= self.total_pages - 1


def customer_to_dict(c: Customer) -> dict[str, Any]:
    return {"id": c.id, "name": c.name, "email": c.email}


def customer_detail_to_dict(c: Customer) -> dict[str, Any]:
    ctype = c.customer_type
    return {
        "id": c.id,
        "name": c.name,
        "email": c.email,
        "tax_id": c.tax_id,
        "customer_type": ctype.description if ctype is not None else None,
        "phones": list(c.phones),
        "profiles": sorted(p.label for p in c.profiles),
        "addresses": [
            {
                "id": a.id,
                "street": a.street,
                "number": a.number,
                "complement": a.complement,
                "district": a.district,
                "postal_code": a.postal_code,
                "city": {"id": a.city.id, "name": a.city.name} if a.city else {"id": a.city_id},
            }
            for a in c.addresses
        ],
    }


def page_to_dict(p: Page) -> dict[str, Any]:
    return {
        "content": [customer_to_dict(c) for c in p.items],
        "page": p.page,
        "size": p.size,
        "total_elements": p.total,
        "total_pages": p.total_pages,
        "first": p.page == 0,
        "last": p.is_last,
    }


def validate_customer_payload(
    s: Session,
    payload: dict[str, Any],
    shape: PayloadShape,
    *,
    customer_id: int | None = None,
) -> list[ValidationError]:
    errs: list[ValidationError] = []

    name = clean(payload.get("name"))
    if not name:
        errs.append(ValidationError("name", "Name is required."))
    elif not 5 <= len(name) <= 120:
        errs.append(ValidationError("name", "Name must be between 5 and 120 characters."))

    email = normalize_email(payload.get("email"))
    if not email:
        errs.append(ValidationError("email", "Email is required."))
    elif not is_valid_email(email):
        errs.append(ValidationError("email", "Email is invalid."))
    else:
        existing = s.query(Customer).filter(Customer.email == email).one_or_none()
        if existing is not None and existing.id != customer_id:
            errs.append(ValidationError("email", "Email already registered."))

    if shape is PayloadShape.UPDATE:
        return errs

    if not payload.get("password"):
        errs.append(ValidationError("password", "Password is required."))

    ctype: CustomerType | None = None
    try:
        ctype = CustomerType.from_code(payload.get("customer_type"))
    except ValueError:
        errs.append(ValidationError("customer_type", "Unknown customer type."))
    else:
        if ctype is None:
            errs.append(ValidationError("customer_type", "Customer type is required."))

    tax_id = clean(payload.get("tax_id"))
    if not tax_id:
        errs.append(ValidationError("tax_id", "Tax id is required."))
    elif ctype is CustomerType.INDIVIDUAL and not is_valid_cpf(tax_id):
        errs.append(ValidationError("tax_id", "Invalid CPF."))
    elif ctype is CustomerType.ORGANIZATION and not is_valid_cnpj(tax_id):
        errs.append(ValidationError("tax_id", "Invalid CNPJ."))

    for field, label in (("phone1", "Phone"), ("street", "Street"), ("number", "Number"), ("postal_code", "Postal code")):
        if not clean(payload.get(field)):
            errs.append(ValidationError(field, f"{label} is required."))

    city_id = clean(payload.get("city_id"))
    if not city_id:
        errs.append(ValidationError("city_id", "City is required."))
    else:
        try:
            if s.get(City, int(city_id)) is None:
                errs.append(ValidationError("city_id", "City not found."))
        except ValueError:
            errs.append(ValidationError("city_id", "City id must be a number."))

    return errs


class CustomerDirectory:
    def __init__(
        self,
        s: Session,
        *,
        storage: Storage | None = None,
        images: ImageService | None = None,
        profile_prefix: str = "cp",
        profile_size: int = 200,
        password_hasher: Callable[[str], str] = generate_password_hash,
    ) -> None:
        self.s = s
        self.storage = storage
        self.images = images or ImageService()
        self.profile_prefix = profile_prefix
        self.profile_size = int(profile_size)
        self.password_hasher = password_hasher

    @classmethod
    def from_app(cls, s: Session, app=None) -> "CustomerDirectory":
        app = app or current_app
        return cls(
            s,
            storage=app.extensions["storage"],
            images=app.extensions["image_service"],
            profile_prefix=app.config["IMG_PREFIX_CLIENT_PROFILE"],
            profile_size=app.config["IMG_PROFILE_SIZE"],
        )

    def _deny(self, principal: Principal | None, what: str) -> AuthorizationError:
        logger.warning(
            "Access denied: principal=%s target=%s",
            principal.id if principal else None,
            what,
        )
        return AuthorizationError("Access denied")

    def find(self, principal: Principal | None, customer_id: int) -> Customer:
        if principal is None or (not principal.has_role(Profile.ADMIN) and customer_id != principal.id):
            raise self._deny(principal, f"customer:{customer_id}")

        c = self.s.get(Customer, customer_id)
        if c is None:
            raise ObjectNotFoundError.for_entity(ENTITY_TYPE, customer_id)
        return c

    def find_by_email(self, principal: Principal | None, email: str) -> Customer:
        email = normalize_email(email) or ""
        if principal is None or (not principal.has_role(Profile.ADMIN) and email != principal.email):
            raise self._deny(principal, f"customer-email:{email}")

        c = self.s.query(Customer).filter(Customer.email == email).one_or_none()
        if c is None:
            raise ObjectNotFoundError.for_entity(ENTITY_TYPE, email)
        return c

    def insert(self, customer: Customer, *, actor: Principal | None = None) -> Customer:
        if not customer.addresses:
            raise InvalidArgumentError("A new customer needs an address.")

        customer.id = None  # type: ignore[assignment]
        self.s.add(customer)
        self.s.flush()

        address = customer.addresses[0]
        address.customer_id = customer.id
        self.s.add(address)
        self.s.flush()

        record_event(
            self.s,
            actor=actor,
            action="customer.create",
            entity_type=ENTITY_TYPE,
            entity_id=str(customer.id),
            metadata={"email": customer.email, "address_id": address.id},
        )
        logger.info("Customer created id=%s address_id=%s", customer.id, address.id)
        return customer

    def update(self, principal: Principal | None, customer: Customer) -> Customer:
        stored = self.find(principal, customer.id)
        before = {"name": stored.name, "email": stored.email}

        stored.name = customer.name
        stored.email = customer.email
        self.s.flush()

        record_event(
            self.s,
            actor=principal,
            action="customer.update",
            entity_type=ENTITY_TYPE,
            entity_id=str(stored.id),
            metadata={"before": before, "after": {"name": stored.name, "email": stored.email}},
        )
        return stored

    def delete(self, principal: Principal | None, customer_id: int) -> None:
        customer = self.find(principal, customer_id)
        try:
            self.s.delete(customer)
            self.s.flush()
        except IntegrityError as e:
            self.s.rollback()
            logger.warning("Customer delete blocked by related rows id=%s: %s", customer_id, e.orig)
            raise DataIntegrityError("Cannot delete a customer that has related orders.") from e

        record_event(
            self.s,
            actor=principal,
            action="customer.delete",
            entity_type=ENTITY_TYPE,
            entity_id=str(customer_id),
        )

    def find_all(self) -> list[Customer]:
        return self.s.query(Customer).order_by(Customer.id).all()

    def find_page(self, page: int, lines_per_page: int, order_by: str, direction: str) -> Page:
        try:
            sort_direction = SortDirection(direction)
        except ValueError:
            raise InvalidArgumentError(f"Invalid sort direction: {direction!r} (use ASC or DESC).") from None
        attribute = CUSTOMER_SORTABLE_FIELDS.get(order_by)
        if attribute is None:
            raise InvalidArgumentError(f"Cannot order customers by {order_by!r}.")
        if page < 0:
            raise InvalidArgumentError("Page index must not be negative.")
        if lines_per_page < 1:
            raise InvalidArgumentError("Page size must be at least 1.")

        column = getattr(Customer, attribute)
        ordering = column.asc() if sort_direction is SortDirection.ASC else column.desc()
        query = self.s.query(Customer)
        total = query.count()
        items = (
            query.order_by(ordering, Customer.id)
            .offset(page * lines_per_page)
            .limit(lines_per_page)
            .all()
        )
        return Page(items=items, page=page, size=lines_per_page, total=total)

    def from_payload(self, payload: dict[str, Any], shape: PayloadShape) -> Customer:
        name = clean(payload.get("name"))
        email = normalize_email(payload.get("email"))

        if shape is PayloadShape.UPDATE:
            raw_id = payload.get("id")
            try:
                customer_id = int(raw_id) if raw_id is not None else None
            except (TypeError, ValueError):
                raise InvalidArgumentError(f"Invalid customer id: {raw_id!r}") from None
            return Customer(id=customer_id, name=name, email=email)

        password = payload.get("password")
        if not password:
            raise InvalidArgumentError("A password is required to register.")
        try:
            ctype = CustomerType.from_code(payload.get("customer_type"))
        except ValueError as e:
            raise InvalidArgumentError(str(e)) from None
        city_id = clean(payload.get("city_id"))
        if city_id is None:
            raise InvalidArgumentError("A city is required to register.")

        customer = Customer(
            id=None,
            name=name,
            email=email,
            tax_id=clean(payload.get("tax_id")),
            customer_type_code=int(ctype) if ctype is not None else None,
            password_hash=self.password_hasher(password),
        )
        customer.add_profile(Profile.CLIENT)

        customer.addresses.append(
            Address(
                street=clean(payload.get("street")),
                number=clean(payload.get("number")),
                complement=clean(payload.get("complement")),
                district=clean(payload.get("district")),
                postal_code=clean(payload.get("postal_code")),
                city_id=int(city_id),
            )
        )

        phone1 = clean(payload.get("phone1"))
        if phone1 is None:
            raise InvalidArgumentError("At least one phone number is required to register.")
        customer.phones.append(phone1)
        for key in ("phone2", "phone3"):
            phone = clean(payload.get(key))
            if phone is not None:
                customer.phones.append(phone)
        return customer

    def upload_profile_picture(self, principal: Principal | None, file_bytes: bytes) -> str:
        if principal is None:
            raise self._deny(principal, "profile-picture")
        if self.storage is None:
            raise RuntimeError("No storage configured for profile pictures")

        img = self.images.get_jpg_image(file_bytes)
        img = self.images.crop_square(img)
        img = self.images.resize(img, self.profile_size)

        key = f"{self.profile_prefix}{principal.id}.{PROFILE_IMAGE_EXTENSION}"
        uri = self.storage.upload_file(
            self.images.to_bytes(img, PROFILE_IMAGE_EXTENSION),
            key,
            PROFILE_IMAGE_CONTENT_TYPE,
        )
        logger.info("Profile picture stored customer_id=%s key=%s", principal.id, key)
        return uri
