"""Notification inbox and push-subscription routes."""

from __future__ import annotations

from flask import jsonify, request
from pydantic import BaseModel, Field

from ...extensions import get_context
from . import bp


class PreferencesForm(BaseModel):
    habit_reminders: bool = Field(alias="habitReminders")


@bp.get("")
def list_notifications(user_id: int):
    items = get_context().inbox.list_for_user(user_id)
    return jsonify({"notifications": [item.to_dict() for item in items]})


@bp.put("/<int:notification_id>/read")
def mark_read(user_id: int, notification_id: int):
    item = get_context().inbox.mark_read(user_id, notification_id)
    return jsonify({"notification": item.to_dict()})


@bp.delete("/<int:notification_id>")
def delete_notification(user_id: int, notification_id: int):
    get_context().inbox.delete(user_id, notification_id)
    return jsonify({"message": "Notification deleted successfully."})


@bp.post("/push-subscription")
def save_push_subscription(user_id: int):
    payload = request.get_json(silent=True) or {}
    subscription = payload.get("subscription", payload)
    get_context().user_settings.save_push_subscription(user_id, subscription)
    return jsonify({"message": "Subscription saved successfully."}), 201


@bp.put("/preferences")
def update_preferences(user_id: int):
    form = PreferencesForm.model_validate(request.get_json(silent=True) or {})
    user = get_context().user_settings.update_notification_preferences(user_id, form.habit_reminders)
    return jsonify({"habitReminders": user.notify_habit_reminders})
