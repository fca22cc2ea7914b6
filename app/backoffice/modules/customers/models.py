from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.backoffice.constants import CustomerType, Profile
from app.backoffice.models import Base


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        Index("idx_customers_name", "name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    # CPF (individual) or CNPJ (organization); only set by registration.
    tax_id: Mapped[str | None] = mapped_column(String(18), nullable=True)
    customer_type_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    addresses: Mapped[list["Address"]] = relationship(
        "Address",
        back_populates="customer",
        cascade="all, delete-orphan",
        order_by="Address.id",
        lazy="selectin",
    )
    phone_rows: Mapped[list["CustomerPhone"]] = relationship(
        "CustomerPhone",
        cascade="all, delete-orphan",
        order_by="CustomerPhone.position",
        collection_class=ordering_list("position"),
        lazy="selectin",
    )
    profile_rows: Mapped[list["CustomerProfile"]] = relationship(
        "CustomerProfile",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    phones: AssociationProxy[list[str]] = association_proxy(
        "phone_rows",
        "number",
        creator=lambda number: CustomerPhone(number=number),
    )

    @property
    def customer_type(self) -> CustomerType | None:
        return CustomerType.from_code(self.customer_type_code)

    @customer_type.setter
    def customer_type(self, value: CustomerType | None) -> None:
        self.customer_type_code = int(value) if value is not None else None

    @property
    def profiles(self) -> set[Profile]:
        return {Profile(row.profile_code) for row in self.profile_rows}

    def add_profile(self, profile: Profile) -> None:
        if profile not in self.profiles:
            self.profile_rows.append(CustomerProfile(profile_code=int(profile)))


class CustomerPhone(Base):
    __tablename__ = "customer_phones"

    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    number: Mapped[str] = mapped_column(String(32), nullable=False)


class CustomerProfile(Base):
    __tablename__ = "customer_profiles"

    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)
    profile_code: Mapped[int] = mapped_column(Integer, primary_key=True)


class Address(Base):
    __tablename__ = "addresses"
    __table_args__ = (
        Index("idx_addresses_customer_id", "customer_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    street: Mapped[str] = mapped_column(Text, nullable=False)
    number: Mapped[str] = mapped_column(String(32), nullable=False)
    complement: Mapped[str | None] = mapped_column(Text, nullable=True)
    district: Mapped[str | None] = mapped_column(Text, nullable=True)
    postal_code: Mapped[str] = mapped_column(String(16), nullable=False)

    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    city_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), nullable=False)

    customer: Mapped[Customer] = relationship("Customer", back_populates="addresses")
    city = relationship("City", lazy="selectin")
