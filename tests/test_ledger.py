# tests/test_ledger.py
import threading
from datetime import datetime, timedelta

import pytest

from study_rpg.errors import NotFound, PersistenceError
from study_rpg.ledger import (
    calc_points, check_streak_on_login, complete_task, get_user, urgency_tenths,
)
from study_rpg.models import level_for_points
from study_rpg.programs import add_task


def test_calc_points_base_components():
    assert calc_points(duration=45, net_count=2, correct=True) == 6 + 4 + 5


def test_calc_points_nothing_supplied():
    assert calc_points() == 0


def test_calc_points_incorrect_has_no_bonus():
    assert calc_points(duration=30, correct=False) == 3


def test_calc_points_difficulty_floors():
    assert calc_points(duration=45, net_count=2, correct=True, difficulty=1.5) == 22


def test_urgency_tenths():
    assert urgency_tenths(None) == 10
    assert urgency_tenths(7) == 10
    assert urgency_tenths(30) == 10
    assert urgency_tenths(3) == 14
    assert urgency_tenths(0) == 17


def test_calc_points_urgency_after_difficulty():
    # 15 -> floor(22.5) = 22 -> floor(22 * 1.4) = 30
    assert calc_points(duration=45, net_count=2, correct=True, difficulty=1.5, days_left=3) == 30


def test_calc_points_urgency_far_from_exam_is_noop():
    assert calc_points(net_count=5, days_left=20) == 15


def test_complete_task_unknown_user(store):
    with pytest.raises(NotFound):
        complete_task(store, "missing", None, duration=10)


def test_complete_task_levels_up(store, make_user, now):
    user_id = make_user(store, points=480)
    result = complete_task(store, user_id, None, net_count=10, now=now)
    assert result.points_earned == 30
    assert result.total_points == 510
    assert result.new_level == 2
    assert result.leveled_up is True
    user = get_user(store, user_id)
    assert user.points == 510
    assert user.level == 2


def test_complete_task_without_level_change(store, make_user, now):
    user_id = make_user(store, points=100)
    result = complete_task(store, user_id, None, duration=20, correct=True, now=now)
    assert result.points_earned == 7
    assert result.leveled_up is False
    assert result.new_level == 1


def test_complete_task_uses_task_difficulty(store, make_user, now):
    user_id = make_user(store)
    task = add_task(store, "Limits drill", "question", duration=40, difficulty=2, topic="Limits")
    result = complete_task(store, user_id, task.id, duration=40, correct=True, now=now)
    assert result.points_earned == (4 + 5) * 2


def test_complete_task_unknown_task_has_no_multiplier(store, make_user, now):
    user_id = make_user(store)
    result = complete_task(store, user_id, "no-such-task", duration=40, correct=True, now=now)
    assert result.points_earned == 9


def test_complete_task_records_history_and_time(store, make_user, now):
    user_id = make_user(store)
    complete_task(store, user_id, "t1", duration=25, correct=True, topic="Energy", now=now)
    complete_task(store, user_id, "t2", net_count=1, now=now)
    user = get_user(store, user_id)
    assert user.total_study_time == 25
    history = user.history
    assert [h.task_id for h in history] == ["t1", "t2"]
    assert history[0].topic == "Energy"
    assert history[0].correct is True
    assert history[0].points == 7
    assert history[0].completed_at == now.isoformat()
    assert history[1].topic is None
    assert history[1].duration == 0


def test_streak_starts_on_first_completion(store, make_user, now):
    user_id = make_user(store)
    result = complete_task(store, user_id, None, duration=10, now=now)
    assert result.streak == 1
    assert get_user(store, user_id).last_study_date == now.isoformat()


def test_streak_same_day_is_idempotent(store, make_user, now):
    user_id = make_user(store)
    complete_task(store, user_id, None, duration=10, now=now)
    later = now + timedelta(hours=8)
    result = complete_task(store, user_id, None, duration=30, correct=True, now=later)
    user = get_user(store, user_id)
    assert result.streak == 1
    assert user.last_study_date == now.isoformat()
    assert user.points == 1 + 8
    assert user.total_study_time == 40
    assert len(user.completed_tasks) == 2


def test_streak_grows_on_next_day(store, make_user, now):
    user_id = make_user(store)
    complete_task(store, user_id, None, duration=10, now=now)
    result = complete_task(store, user_id, None, duration=10, now=now + timedelta(days=1))
    assert result.streak == 2


def test_streak_grows_by_one_after_gap(store, make_user, now):
    user_id = make_user(store)
    complete_task(store, user_id, None, duration=10, now=now)
    result = complete_task(store, user_id, None, duration=10, now=now + timedelta(days=5))
    assert result.streak == 2


def test_streak_uses_calendar_days_not_hours(store, make_user):
    user_id = make_user(store)
    late = datetime(2026, 3, 10, 23, 50)
    complete_task(store, user_id, None, duration=10, now=late)
    result = complete_task(store, user_id, None, duration=10, now=late + timedelta(minutes=20))
    assert result.streak == 2


def test_wrong_answer_flags_weak_topic_once(store, make_user, now):
    user_id = make_user(store)
    complete_task(store, user_id, None, correct=False, topic="Optics", now=now)
    complete_task(store, user_id, None, correct=False, topic="Optics", now=now)
    complete_task(store, user_id, None, correct=True, topic="Motion", now=now)
    assert get_user(store, user_id).weak_topics == ["Optics"]


def test_failed_write_leaves_user_unchanged(failing_store, make_user, now):
    store = failing_store()
    user_id = make_user(store, points=50)
    store.fail_on.add("users")
    with pytest.raises(PersistenceError):
        complete_task(store, user_id, None, duration=30, correct=True, topic="Waves", now=now)
    user = get_user(store, user_id)
    assert user.points == 50
    assert user.streak == 0
    assert user.completed_tasks == []
    assert user.weak_topics == []


def test_level_invariant_and_monotonic_points(store, make_user, now):
    user_id = make_user(store)
    previous = 0
    for day in range(12):
        result = complete_task(
            store, user_id, None, duration=60, net_count=day * 3, correct=day % 2 == 0,
            days_left=max(0, 10 - day), now=now + timedelta(days=day),
        )
        user = get_user(store, user_id)
        assert user.points >= previous
        assert user.level == level_for_points(user.points) == user.points // 500 + 1
        assert result.new_level == user.level
        previous = user.points


def test_concurrent_completions_are_not_lost(store, make_user, now):
    user_id = make_user(store)

    def worker():
        for _ in range(10):
            complete_task(store, user_id, None, correct=True, now=now)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    user = get_user(store, user_id)
    assert user.points == 8 * 10 * 5
    assert len(user.completed_tasks) == 80


def test_login_check_resets_after_missed_day(store, make_user, now):
    user_id = make_user(store)
    complete_task(store, user_id, None, duration=10, now=now)
    complete_task(store, user_id, None, duration=10, now=now + timedelta(days=1))
    check_streak_on_login(store, user_id, now=now + timedelta(days=3))
    assert get_user(store, user_id).streak == 0


def test_login_check_keeps_streak_next_day(store, make_user, now):
    user_id = make_user(store)
    complete_task(store, user_id, None, duration=10, now=now)
    check_streak_on_login(store, user_id, now=now + timedelta(days=1, hours=10))
    assert get_user(store, user_id).streak == 1


def test_login_check_without_study_date(store, make_user, now):
    user_id = make_user(store)
    check_streak_on_login(store, user_id, now=now)
    assert get_user(store, user_id).streak == 0


def test_login_check_unknown_user(store):
    with pytest.raises(NotFound):
        check_streak_on_login(store, "ghost")


def test_completion_after_reset_grows_by_one(store, make_user, now):
    user_id = make_user(store)
    complete_task(store, user_id, None, duration=10, now=now)
    complete_task(store, user_id, None, duration=10, now=now + timedelta(days=1))
    check_streak_on_login(store, user_id, now=now + timedelta(days=4))
    result = complete_task(store, user_id, None, duration=10, now=now + timedelta(days=4))
    assert result.streak == 1
