"""Student dashboard: level progress, accuracy and pending claims."""
from study_rpg.ledger import get_user
from study_rpg.models import POINTS_PER_LEVEL
from study_rpg.review import weakest_first


def get_level_label(level: int) -> str:
    if level >= 10:
        return "OFFICER"
    elif level >= 6:
        return "SERGEANT"
    elif level >= 3:
        return "CADET"
    return "RECRUIT"


def get_progress_color(pct: float) -> str:
    if pct >= 80:
        return "green"
    elif pct >= 50:
        return "yellow"
    elif pct >= 25:
        return "dark_orange"
    return "red"


def level_progress(points: int) -> dict:
    """Points collected inside the current level and what is left to the next one."""
    into_level = max(points, 0) % POINTS_PER_LEVEL
    return {
        "into_level": into_level,
        "to_next_level": POINTS_PER_LEVEL - into_level,
        "pct": round(into_level / POINTS_PER_LEVEL * 100, 1),
    }


def student_summary(store, user_id: str) -> dict:
    user = get_user(store, user_id)
    history = user.history
    answered = len(history)
    correct = sum(1 for r in history if r.correct)
    return {
        "name": user.name,
        "points": user.points,
        "level": user.level,
        "label": get_level_label(user.level),
        **level_progress(user.points),
        "streak": user.streak,
        "total_study_time": user.total_study_time,
        "tasks_completed": answered,
        "accuracy": round(correct / answered * 100, 1) if answered else 0.0,
        "weak_topics": weakest_first(store, user_id),
        "pending_claims": len(user.pending_rewards),
    }
