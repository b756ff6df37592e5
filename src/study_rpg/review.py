"""Weak topic identification from a learner's completed-task history."""
from study_rpg.ledger import get_user

WEAK_ACCURACY = 0.6


def topic_stats(store, user_id: str) -> dict[str, dict]:
    """Correct/total counts per topic; records without a topic are skipped."""
    user = get_user(store, user_id)
    stats: dict[str, dict] = {}
    for record in user.history:
        if not record.topic:
            continue
        entry = stats.setdefault(record.topic, {"correct": 0, "total": 0})
        entry["total"] += 1
        if record.correct:
            entry["correct"] += 1
    for entry in stats.values():
        entry["accuracy"] = round(entry["correct"] / entry["total"], 3)
    return stats


def weak_topics(store, user_id: str, threshold: float = WEAK_ACCURACY) -> set[str]:
    """Topics answered correctly less than `threshold` of the time."""
    return {
        topic
        for topic, s in topic_stats(store, user_id).items()
        if s["total"] > 0 and s["correct"] / s["total"] < threshold
    }


def weakest_first(store, user_id: str, threshold: float = WEAK_ACCURACY) -> list[dict]:
    """Weak topics with their counts, worst accuracy first."""
    return sorted(
        (
            {"topic": topic, **s}
            for topic, s in topic_stats(store, user_id).items()
            if s["correct"] / s["total"] < threshold
        ),
        key=lambda s: (s["accuracy"], s["topic"]),
    )
