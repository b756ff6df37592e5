"""Typed commands built from loosely-typed input before it reaches the core."""
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from study_rpg.errors import InvalidInput


class CompleteTaskCommand(BaseModel):
    user_id: str
    task_id: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)
    net_count: Optional[int] = Field(default=None, ge=0)
    correct: bool = False
    topic: Optional[str] = None
    days_left: Optional[int] = Field(default=None, ge=0)

    @field_validator("topic", "task_id")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        return v.strip() or None


class ClaimRequest(BaseModel):
    user_id: str
    reward_id: str


class ProcessClaimCommand(BaseModel):
    claim_id: str
    user_id: str
    decision: Literal["approved", "rejected"]


class NewReward(BaseModel):
    name: str = Field(min_length=1)
    cost: int = Field(ge=0)
    description: str = ""
    icon: str = "🎁"


class NewTask(BaseModel):
    title: str = Field(min_length=1)
    type: Literal["video", "question", "theory"]
    duration: int = Field(default=0, ge=0)
    base_points: int = Field(default=0, ge=0)
    difficulty: float = Field(default=1, gt=0)
    topic: Optional[str] = None
    program_id: Optional[str] = None


class NewProgram(BaseModel):
    name: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    description: str = ""


class NewBook(BaseModel):
    title: str = Field(min_length=1)
    author: str = ""
    subject: str = ""
    total_pages: int = Field(default=0, ge=0)


class GenerateQuestionCommand(BaseModel):
    subject: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    difficulty: int = Field(ge=1, le=3)


class GenerateProgramCommand(BaseModel):
    subject: str = Field(min_length=1)
    weak_topics: list[str] = []
    daily_hours: float = Field(default=4, gt=0)
    days_left: int = Field(default=7, ge=0)


class LoginCommand(BaseModel):
    username: str = Field(min_length=1)
    password: str


def parse(model: type[BaseModel], payload: dict) -> BaseModel:
    """Validate `payload` into `model`, raising InvalidInput with readable messages."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidInput([
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
            for err in e.errors()
        ]) from e
