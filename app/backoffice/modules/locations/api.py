from __future__ import annotations

from flask import Blueprint, jsonify

from app.backoffice.db import db_session
from app.backoffice.modules.locations.service import (
    city_to_dict,
    list_cities_for_state,
    list_states,
    state_to_dict,
)

bp = Blueprint("locations", __name__)


@bp.get("/states")
def states_list():
    s = db_session()
    return jsonify([state_to_dict(st) for st in list_states(s)])


@bp.get("/states/<int:state_id>/cities")
def state_cities(state_id: int):
    s = db_session()
    return jsonify([city_to_dict(c) for c in list_cities_for_state(s, state_id)])
