"""Data classes for the study ledger domain model."""
import uuid
from dataclasses import dataclass, field, asdict, fields
from datetime import datetime
from typing import Optional

POINTS_PER_LEVEL = 500

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
CLAIM_STATUSES = (PENDING, APPROVED, REJECTED)

TASK_TYPES = ("video", "question", "theory")


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now().isoformat()


def level_for_points(points: int) -> int:
    """Level derived from a point balance; never below 1."""
    return max(1, points // POINTS_PER_LEVEL + 1)


class Record:
    """Mixin turning a dataclass into a store record and back."""

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict):
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in record.items() if k in known})


@dataclass
class CompletedTaskRecord(Record):
    task_id: Optional[str]
    topic: Optional[str]
    correct: bool
    points: int
    duration: int
    completed_at: str


@dataclass
class User(Record):
    id: str
    username: str
    name: str
    password: str = ""
    role: str = "student"
    points: int = 0
    level: int = 1
    total_study_time: int = 0
    streak: int = 0
    last_study_date: Optional[str] = None
    completed_tasks: list = field(default_factory=list)
    pending_rewards: list = field(default_factory=list)
    weak_topics: list = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)

    @property
    def history(self) -> list[CompletedTaskRecord]:
        return [CompletedTaskRecord.from_record(r) for r in self.completed_tasks]

    def public(self) -> dict:
        data = self.to_record()
        data.pop("password", None)
        return data


@dataclass
class Task(Record):
    id: str
    title: str
    type: str
    duration: int = 0
    base_points: int = 0
    difficulty: float = 1
    topic: Optional[str] = None
    program_id: Optional[str] = None
    day: Optional[str] = None
    day_number: Optional[int] = None
    resource: Optional[str] = None
    created_at: str = field(default_factory=now_iso)


@dataclass
class Reward(Record):
    id: str
    name: str
    cost: int
    description: str = ""
    icon: str = "🎁"
    created_at: str = field(default_factory=now_iso)


@dataclass
class Claim(Record):
    id: str
    user_id: str
    reward_id: str
    reward_name: str
    cost: int
    status: str = PENDING
    requested_at: str = field(default_factory=now_iso)
    processed_at: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != PENDING


@dataclass
class Question(Record):
    id: str
    question: str
    options: list
    correct_index: int
    subject: str
    topic: str
    difficulty: int
    explanation: str = ""
    formula: str = ""
    tip: str = ""
    exam_type: str = ""
    source: str = "Gemini-AI"
    created_at: str = field(default_factory=now_iso)


@dataclass
class Program(Record):
    id: str
    name: str
    subject: str
    description: str = ""
    strategy: str = ""
    is_active: bool = True
    ai_generated: bool = False
    exam_type: str = ""
    days_left: Optional[int] = None
    schedule: list = field(default_factory=list)
    total_points: Optional[int] = None
    exam_tips: list = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)


@dataclass
class Book(Record):
    id: str
    title: str
    author: str = ""
    subject: str = ""
    total_pages: int = 0
    current_page: int = 0
    added_at: str = field(default_factory=now_iso)


@dataclass
class LedgerResult:
    points_earned: int
    total_points: int
    new_level: int
    leveled_up: bool
    streak: int
