# tests/test_integration.py
"""End-to-end test of the study, reward and approval workflow."""
from datetime import timedelta

from study_rpg.auth import login
from study_rpg.dashboard import student_summary
from study_rpg.db import SQLiteRecordStore
from study_rpg.ledger import complete_task, get_user
from study_rpg.programs import generate_program
from study_rpg.review import weak_topics
from study_rpg.rewards import add_reward, pending_claims, process_claim, request_claim
from study_rpg.seed import seed_all

SCHEDULE_REPLY = """```json
{
    "programName": "Physics Week",
    "schedule": [
        {"day": "Day 1", "tasks": [
            {"title": "Motion drill", "type": "question", "duration": 60, "topic": "Motion", "points": 50}
        ]},
        {"day": "Day 2", "tasks": [
            {"title": "Optics video", "type": "video", "duration": 40, "topic": "Optics", "points": 30}
        ]}
    ],
    "totalPoints": 80
}
```"""


def test_full_study_and_reward_workflow(tmp_db, now, make_generator):
    """Simulate a week of study, a reward claim and the guardian's approval."""
    store = SQLiteRecordStore(tmp_db)
    seed_all(store)
    student = login(store, "student", "123456", now=now)
    guardian = login(store, "guardian", "admin123", now=now)
    assert guardian["role"] == "admin"

    program, tasks = generate_program(store, make_generator([SCHEDULE_REPLY]), "Physics", days_left=7)
    motion, optics = tasks

    # Day 1 to 3: motion drills go well, optics goes badly
    for day in range(3):
        when = now + timedelta(days=day)
        complete_task(store, student["id"], motion.id, duration=60, net_count=20,
                      correct=True, topic="Motion", days_left=7 - day, now=when)
        complete_task(store, student["id"], optics.id, duration=40,
                      correct=day == 0, topic="Optics", days_left=7 - day, now=when)

    user = get_user(store, student["id"])
    assert user.streak == 3
    assert user.level == user.points // 500 + 1
    assert weak_topics(store, student["id"]) == {"Optics"}

    reward = add_reward(store, "Weekend trip", 150)
    claim = request_claim(store, student["id"], reward.id, now=now + timedelta(days=3))
    assert [c["id"] for c in pending_claims(store)] == [claim.id]

    before = user.points
    process_claim(store, claim.id, student["id"], "approved", now=now + timedelta(days=3))
    user = get_user(store, student["id"])
    assert user.points == before - 150
    assert user.pending_rewards == []

    # two idle days break the streak at the next login
    login(store, "student", "123456", now=now + timedelta(days=5))
    assert get_user(store, student["id"]).streak == 0

    summary = student_summary(store, student["id"])
    assert summary["tasks_completed"] == 6
    assert summary["pending_claims"] == 0
    assert summary["weak_topics"][0]["topic"] == "Optics"
