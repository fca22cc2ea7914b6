from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.backoffice.errors import ObjectNotFoundError
from app.backoffice.modules.locations.models import City, State


def list_states(s: Session) -> list[State]:
    return s.query(State).order_by(State.name).all()


def list_cities_for_state(s: Session, state_id: int) -> list[City]:
    if s.get(State, state_id) is None:
        raise ObjectNotFoundError.for_entity("State", state_id)
    return s.query(City).filter(City.state_id == state_id).order_by(City.name).all()


def state_to_dict(st: State) -> dict[str, Any]:
    return {"id": st.id, "name": st.name}


def city_to_dict(c: City) -> dict[str, Any]:
    return {"id": c.id, "name": c.name}
