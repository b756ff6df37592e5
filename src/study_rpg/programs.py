"""Study programs and their task templates."""
import logging

from study_rpg.db import find
from study_rpg.errors import GenerationUnavailable, NotFound
from study_rpg.generator import parse_json
from study_rpg.locks import collection_lock
from study_rpg.models import TASK_TYPES, Book, Program, Task, new_id

logger = logging.getLogger(__name__)


def program_prompt(subject: str, weak_topics: list[str], daily_hours: float, days_left: int,
                   exam: str = "MSÜ") -> str:
    return f"""Build an intensive {subject} study program for a student with {days_left} days left before the {exam} exam.

STUDENT PROFILE:
- Days left: {days_left}
- Weak topics: {', '.join(weak_topics) or 'Not specified'}
- Daily study: {daily_hours} hours
- Goal: pass the {exam} exam

STRATEGY:
1. Focus on weak topics first
2. Every day includes question practice
3. Add review and reinforcement time
4. Final days are general review and mock exams

PROGRAM (JSON only):
{{
    "programName": "{exam} {subject} Intensive Program",
    "description": "Short description",
    "strategy": "Overall strategy",
    "schedule": [
        {{
            "day": "Day 1",
            "focus": "Focus topic",
            "tasks": [
                {{
                    "title": "Task name",
                    "type": "video/question/theory",
                    "duration": 45,
                    "topic": "Topic",
                    "points": 50,
                    "resource": "Suggested resource"
                }}
            ]
        }}
    ],
    "dailyPoints": 200,
    "totalPoints": 1400,
    "examTips": ["tip 1", "tip 2"]
}}"""


def _save(store, collection: str, new_records: list[dict]) -> None:
    with collection_lock(collection):
        records = store.load_all(collection)
        records.extend(new_records)
        store.save_all(collection, records)


def create_program(store, name: str, subject: str, description: str = "") -> Program:
    program = Program(id=new_id(), name=name, subject=subject, description=description)
    _save(store, "programs", [program.to_record()])
    return program


def add_task(store, title: str, type: str, duration: int = 0, base_points: int = 0,
             difficulty: float = 1, topic: str | None = None,
             program_id: str | None = None) -> Task:
    if type not in TASK_TYPES:
        raise ValueError(f"task type must be one of {TASK_TYPES}, got {type!r}")
    task = Task(
        id=new_id(), title=title, type=type, duration=duration, base_points=base_points,
        difficulty=difficulty or 1, topic=topic, program_id=program_id,
    )
    _save(store, "tasks", [task.to_record()])
    return task


def get_task(store, task_id: str) -> Task:
    record = find(store.load_all("tasks"), task_id)
    if record is None:
        raise NotFound("task", task_id)
    return Task.from_record(record)


def list_tasks(store) -> list[Task]:
    return [Task.from_record(t) for t in store.load_all("tasks")]


def add_book(store, title: str, author: str = "", subject: str = "", total_pages: int = 0) -> Book:
    book = Book(id=new_id(), title=title, author=author, subject=subject, total_pages=int(total_pages))
    _save(store, "books", [book.to_record()])
    logger.info("book %s added: %s", book.id, title)
    return book


def list_books(store) -> list[Book]:
    return [Book.from_record(b) for b in store.load_all("books")]


def active_programs(store) -> list[Program]:
    return [Program.from_record(p) for p in store.load_all("programs") if p.get("is_active")]


def tasks_for_program(store, program_id: str) -> list[Task]:
    return [Task.from_record(t) for t in store.load_all("tasks") if t.get("program_id") == program_id]


def _task_type(value) -> str:
    # generated types sometimes come back as "video/question/theory"
    value = str(value or "").lower()
    return next((t for t in TASK_TYPES if t in value), "theory")


def _whole_number(item: dict, key: str) -> int:
    try:
        return int(item.get(key) or 0)
    except (TypeError, ValueError) as e:
        raise GenerationUnavailable(f"generated task has a bad {key}: {item.get(key)!r}") from e


def generate_program(store, generator, subject: str, weak_topics: list[str] | None = None,
                     daily_hours: float = 4, days_left: int = 7,
                     exam: str = "MSÜ") -> tuple[Program, list[Task]]:
    """Ask the generator for a schedule and store it with one task per scheduled item."""
    weak_topics = weak_topics or []
    data = parse_json(generator.generate(
        program_prompt(subject, weak_topics, daily_hours, days_left, exam)
    ))
    schedule = data.get("schedule")
    if not isinstance(schedule, list):
        raise GenerationUnavailable("generated program has no schedule")

    program = Program(
        id=new_id(),
        name=data.get("programName") or f"{exam} {subject} Program",
        subject=subject,
        description=data.get("description", ""),
        strategy=data.get("strategy", ""),
        ai_generated=True,
        exam_type=exam,
        days_left=days_left,
        schedule=schedule,
        total_points=data.get("totalPoints"),
        exam_tips=data.get("examTips", []),
    )
    tasks = []
    for day_number, day in enumerate(schedule, 1):
        if not isinstance(day, dict) or not isinstance(day.get("tasks"), list):
            continue
        for item in day["tasks"]:
            if not isinstance(item, dict):
                continue
            tasks.append(Task(
                id=new_id(),
                program_id=program.id,
                title=item.get("title", ""),
                type=_task_type(item.get("type")),
                topic=item.get("topic"),
                duration=_whole_number(item, "duration"),
                base_points=_whole_number(item, "points"),
                day=day.get("day"),
                day_number=day_number,
                resource=item.get("resource"),
            ))

    _save(store, "programs", [program.to_record()])
    _save(store, "tasks", [t.to_record() for t in tasks])
    logger.info("generated program %s for %s with %d tasks", program.id, subject, len(tasks))
    return program, tasks
