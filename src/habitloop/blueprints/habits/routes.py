"""Habit routes."""

from __future__ import annotations

from flask import jsonify, request

from ...extensions import get_context
from . import bp
from .forms import HabitForm, StatusForm

HISTORY_DAYS = 180  # Default trailing window for completion history
ANALYTICS_DAYS = 90  # Default trailing window for performance analytics


def _payload() -> dict:
    return request.get_json(silent=True) or {}


@bp.get("")
def list_habits(user_id: int):
    """All of the user's habits, newest first."""

    habits = get_context().habits.list_habits(user_id)
    return jsonify({"habits": [habit.to_dict() for habit in habits]})


@bp.get("/today")
def active_today(user_id: int):
    """Habits scheduled for the user's local today."""

    ctx = get_context()
    habits = ctx.habits.get_active_today(user_id)
    return jsonify({"habits": [habit.to_dict() for habit in habits]})


@bp.get("/public")
def public_habits(user_id: int):
    habits = get_context().habits.list_public_habits(user_id)
    return jsonify(
        {
            "habits": [
                {
                    "id": habit.id,
                    "icon": habit.icon,
                    "title": habit.title,
                    "habitStreak": habit.habit_streak,
                }
                for habit in habits
            ]
        }
    )


@bp.post("")
def create_habit(user_id: int):
    form = HabitForm.model_validate(_payload())
    created = get_context().habits.create_habit(user_id, form.to_draft())
    body = {
        "habit": created.habit.to_dict(),
        "feasibility": created.feasibility.to_dict(),
        "warnings": created.warnings,
    }
    return jsonify(body), 201


@bp.post("/feasibility")
def check_feasibility(user_id: int):
    """Dry-run the feasibility check without creating anything."""

    form = HabitForm.model_validate(_payload())
    verdict = get_context().habits.check_feasibility(user_id, form.to_draft())
    return jsonify(verdict.to_dict())


@bp.put("/<int:habit_id>")
def update_habit(user_id: int, habit_id: int):
    form = HabitForm.model_validate(_payload())
    habit, warnings = get_context().habits.update_habit(user_id, habit_id, form.to_draft())
    return jsonify({"habit": habit.to_dict(), "warnings": warnings})


@bp.delete("/<int:habit_id>")
def delete_habit(user_id: int, habit_id: int):
    get_context().habits.delete_habit(user_id, habit_id)
    return jsonify({"message": "Habit deleted successfully."})


@bp.put("/<int:habit_id>/status")
def set_status(user_id: int, habit_id: int):
    form = StatusForm.model_validate(_payload())
    change = get_context().habits.set_status(user_id, habit_id, form.status)
    return jsonify(
        {
            "habit": change.habit.to_dict(),
            "previousStatus": change.previous_status,
            "ledgerRecorded": change.ledger_recorded,
            "generalStreak": change.general_streak,
            "warnings": change.warnings,
        }
    )


@bp.get("/<int:habit_id>/history")
def completion_history(user_id: int, habit_id: int):
    days = request.args.get("days", default=HISTORY_DAYS, type=int)
    return jsonify(get_context().analytics.completion_history(user_id, habit_id, days=days))


@bp.get("/analytics")
def performance_analytics(user_id: int):
    days = request.args.get("days", default=ANALYTICS_DAYS, type=int)
    return jsonify(get_context().analytics.performance_analytics(user_id, days=days))
