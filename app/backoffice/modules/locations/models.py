from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.backoffice.models import Base


class State(Base):
    __tablename__ = "states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    cities: Mapped[list["City"]] = relationship(
        "City",
        back_populates="state",
        order_by="City.name",
        lazy="selectin",
    )


class City(Base):
    __tablename__ = "cities"
    __table_args__ = (
        Index("idx_cities_state_id", "state_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    state_id: Mapped[int | None] = mapped_column(ForeignKey("states.id", ondelete="CASCADE"), nullable=True)

    state: Mapped[State | None] = relationship("State", back_populates="cities", lazy="selectin")
