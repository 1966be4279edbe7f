"""Blueprint registry for HabitLoop."""
