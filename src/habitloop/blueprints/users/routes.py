"""User streak settings routes."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import InvalidArgument
from ...extensions import get_context
from . import bp


@bp.get("/streak")
def streak_summary(user_id: int):
    return jsonify(get_context().user_settings.streak_summary(user_id))


@bp.post("/vacation")
def toggle_vacation(user_id: int):
    user = get_context().user_settings.toggle_vacation(user_id)
    return jsonify({"isVacation": user.is_vacation})


@bp.put("/timezone")
def set_timezone(user_id: int):
    payload = request.get_json(silent=True) or {}
    zone = payload.get("timezone")
    if not isinstance(zone, str):
        raise InvalidArgument("Field 'timezone' is required.")
    user = get_context().user_settings.set_timezone(user_id, zone)
    return jsonify({"timezone": user.user_time_zone})
