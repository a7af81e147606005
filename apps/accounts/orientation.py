# apps/accounts/orientation.py
"""
Orientation Tracker.

A user's onboarding progress is stored as JSON on the user row:

    {
        "main":    {"completed_tasks": [3, 7], "is_completed": true},
        "social":  {"completed_tasks": [],     "is_completed": false},
        ...
        "overall_completed": false
    }

Every function here is pure; callers persist the returned state.
"""
import copy

from .tiers import CATEGORIES, parse_category

TASKS_PER_CATEGORY = 2

RECORDED = "recorded"
DUPLICATE = "duplicate"
ALREADY_COMPLETE = "already_complete"


def default_orientation_status() -> dict:
    state = {cat: {"completed_tasks": [], "is_completed": False} for cat in CATEGORIES}
    state["overall_completed"] = False
    return state


def normalize(state) -> dict:
    """Return a full copy of ``state`` with missing categories filled in and flags re-derived."""
    result = default_orientation_status()
    for cat in CATEGORIES:
        entry = (state or {}).get(cat) or {}
        seen = []
        for task_id in entry.get("completed_tasks", []):
            if task_id not in seen:
                seen.append(task_id)
        result[cat]["completed_tasks"] = seen
        result[cat]["is_completed"] = len(seen) >= TASKS_PER_CATEGORY
    result["overall_completed"] = all(result[cat]["is_completed"] for cat in CATEGORIES)
    return result


def record_completion(state, category, task_id):
    """
    Add ``task_id`` to ``category`` and re-derive the completion flags.

    Returns ``(new_state, outcome)``. Repeating a task id is a no-op
    (DUPLICATE); a category that already holds enough tasks is left
    untouched (ALREADY_COMPLETE). The input is never mutated.
    """
    category = parse_category(category)
    new_state = normalize(copy.deepcopy(state))
    entry = new_state[category]

    if task_id in entry["completed_tasks"]:
        return new_state, DUPLICATE

    if entry["is_completed"]:
        return new_state, ALREADY_COMPLETE

    entry["completed_tasks"].append(task_id)
    entry["is_completed"] = len(entry["completed_tasks"]) >= TASKS_PER_CATEGORY
    new_state["overall_completed"] = all(new_state[cat]["is_completed"] for cat in CATEGORIES)
    return new_state, RECORDED


def is_overall_completed(state) -> bool:
    return normalize(state)["overall_completed"]


def is_in_orientation_mode(state) -> bool:
    return not is_overall_completed(state)


def is_category_completed(state, category) -> bool:
    return normalize(state)[parse_category(category)]["is_completed"]


def has_completed_task(state, category, task_id) -> bool:
    return task_id in normalize(state)[parse_category(category)]["completed_tasks"]


def progress(state) -> dict:
    """Per-category counts for the dashboard."""
    current = normalize(state)
    return {
        cat: {
            "completed": min(len(current[cat]["completed_tasks"]), TASKS_PER_CATEGORY),
            "required": TASKS_PER_CATEGORY,
            "is_completed": current[cat]["is_completed"],
        }
        for cat in CATEGORIES
    }
