"""Progress ledger: points, levels and streaks for a single learner."""
import logging
import math
from datetime import date, datetime

from study_rpg.db import find, find_index
from study_rpg.errors import NotFound
from study_rpg.locks import collection_lock
from study_rpg.models import CompletedTaskRecord, LedgerResult, Task, User, level_for_points

logger = logging.getLogger(__name__)

POINTS_PER_NET = 3
MINUTES_PER_POINT = 10
CORRECT_BONUS = 5
URGENCY_WINDOW_DAYS = 7


def get_user(store, user_id: str) -> User:
    record = find(store.load_all("users"), user_id)
    if record is None:
        raise NotFound("user", user_id)
    return User.from_record(record)


def urgency_tenths(days_left: int | None) -> int:
    """Urgency multiplier in tenths: 10 means x1.0, 17 means x1.7."""
    if days_left is None:
        return 10
    return 10 + (URGENCY_WINDOW_DAYS - min(days_left, URGENCY_WINDOW_DAYS))


def calc_points(
    duration: int | None = None,
    net_count: int | None = None,
    correct: bool = False,
    difficulty: float | None = None,
    days_left: int | None = None,
) -> int:
    points = 0
    if net_count is not None:
        points += net_count * POINTS_PER_NET
    if duration is not None:
        points += duration // MINUTES_PER_POINT
    if correct:
        points += CORRECT_BONUS
    if difficulty:
        points = math.floor(points * difficulty)
    return points * urgency_tenths(days_left) // 10


def _calendar_day(value: str | None) -> date | None:
    return datetime.fromisoformat(value).date() if value else None


def complete_task(
    store,
    user_id: str,
    task_id: str | None,
    duration: int | None = None,
    net_count: int | None = None,
    correct: bool = False,
    topic: str | None = None,
    days_left: int | None = None,
    now: datetime | None = None,
) -> LedgerResult:
    """Credit a finished study task to the user and rewrite their record once."""
    now = now or datetime.now()
    with collection_lock("users"):
        users = store.load_all("users")
        idx = find_index(users, user_id)
        if idx == -1:
            raise NotFound("user", user_id)
        user = User.from_record(users[idx])

        task_record = find(store.load_all("tasks"), task_id) if task_id else None
        difficulty = Task.from_record(task_record).difficulty if task_record else None
        earned = calc_points(duration, net_count, correct, difficulty, days_left)

        user.points += earned
        user.total_study_time += duration or 0
        user.completed_tasks.append(CompletedTaskRecord(
            task_id=task_id,
            topic=topic,
            correct=bool(correct),
            points=earned,
            duration=duration or 0,
            completed_at=now.isoformat(),
        ).to_record())

        if _calendar_day(user.last_study_date) != now.date():
            user.streak += 1
            user.last_study_date = now.isoformat()

        new_level = level_for_points(user.points)
        leveled_up = new_level > user.level
        user.level = new_level

        if topic and not correct and topic not in user.weak_topics:
            user.weak_topics.append(topic)

        users[idx] = user.to_record()
        store.save_all("users", users)

    logger.info(
        "user %s completed task %s: +%d points (total %d, level %d, streak %d)",
        user_id, task_id, earned, user.points, user.level, user.streak,
    )
    if leveled_up:
        logger.info("user %s reached level %d", user_id, new_level)
    return LedgerResult(
        points_earned=earned,
        total_points=user.points,
        new_level=user.level,
        leveled_up=leveled_up,
        streak=user.streak,
    )


def check_streak_on_login(store, user_id: str, now: datetime | None = None) -> None:
    """Reset the streak when more than one calendar day passed since the last study day."""
    now = now or datetime.now()
    with collection_lock("users"):
        users = store.load_all("users")
        idx = find_index(users, user_id)
        if idx == -1:
            raise NotFound("user", user_id)
        user = User.from_record(users[idx])
        last = _calendar_day(user.last_study_date)
        if last is None or (now.date() - last).days <= 1 or user.streak == 0:
            return
        user.streak = 0
        users[idx] = user.to_record()
        store.save_all("users", users)
    logger.info("streak reset for user %s (last study day %s)", user_id, last.isoformat())
