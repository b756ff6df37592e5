# tests/test_dashboard.py
from study_rpg.dashboard import (
    get_level_label, get_progress_color, level_progress, student_summary,
)
from study_rpg.ledger import complete_task
from study_rpg.rewards import add_reward, request_claim


def test_level_label():
    assert get_level_label(1) == "RECRUIT"
    assert get_level_label(3) == "CADET"
    assert get_level_label(7) == "SERGEANT"
    assert get_level_label(12) == "OFFICER"


def test_progress_color():
    assert get_progress_color(90) == "green"
    assert get_progress_color(60) == "yellow"
    assert get_progress_color(30) == "dark_orange"
    assert get_progress_color(5) == "red"


def test_level_progress():
    assert level_progress(0) == {"into_level": 0, "to_next_level": 500, "pct": 0.0}
    assert level_progress(750) == {"into_level": 250, "to_next_level": 250, "pct": 50.0}
    assert level_progress(-20)["into_level"] == 0


def test_student_summary_with_no_data(store, make_user):
    user_id = make_user(store, name="Ayse")
    s = student_summary(store, user_id)
    assert s["name"] == "Ayse"
    assert s["points"] == 0
    assert s["tasks_completed"] == 0
    assert s["accuracy"] == 0.0
    assert s["weak_topics"] == []
    assert s["pending_claims"] == 0


def test_student_summary_with_data(store, make_user, now):
    user_id = make_user(store, points=480)
    complete_task(store, user_id, None, duration=30, net_count=5, correct=True, topic="Force", now=now)
    complete_task(store, user_id, None, correct=False, topic="Optics", now=now)
    reward = add_reward(store, "Snack", 100)
    request_claim(store, user_id, reward.id)
    s = student_summary(store, user_id)
    assert s["points"] == 480 + 23
    assert s["level"] == 2
    assert s["label"] == "RECRUIT"
    assert s["into_level"] == 3
    assert s["streak"] == 1
    assert s["total_study_time"] == 30
    assert s["tasks_completed"] == 2
    assert s["accuracy"] == 50.0
    assert [w["topic"] for w in s["weak_topics"]] == ["Optics"]
    assert s["pending_claims"] == 1
