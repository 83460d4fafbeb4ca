from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional
import uuid

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, DateTime, JSON


MULTIPLE_CHOICE = "multiple-choice"
TRUE_FALSE = "true-false"
FILL_IN_BLANK = "fill-blank"

DIFFICULTIES = ("easy", "medium", "hard")


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ----------------- Generated quiz shapes -----------------

class GeneratedQuestion(SQLModel):
    id: str = Field(default_factory=new_id)
    kind: str
    text: str
    options: List[str] = Field(default_factory=list)
    correct_answer: str = ""
    correct_index: int = 0
    points: int = 1
    provenance: str = "rule-based"
    explanation: Optional[str] = None


class QuizDraft(SQLModel):
    questions: List[GeneratedQuestion] = Field(default_factory=list)


class QuizGenerationRequest(SQLModel):
    title: str = ""
    description: str = ""
    difficulty: str = "medium"
    question_count: int = 0


# ----------------- API payloads -----------------

class GenerateQuizRequest(SQLModel):
    content: str
    title: str = Field(min_length=1)
    description: str = ""
    difficulty: str = "medium"
    question_count: int = Field(default=0, ge=0, le=50, alias="questionCount")


class QuizUpdate(SQLModel):
    title: Optional[str] = None
    description: Optional[str] = None


class AttemptSubmission(SQLModel):
    answers: Dict[str, str] = Field(default_factory=dict)


# ----------------- Tables -----------------

class Quiz(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    title: str
    description: str = ""
    difficulty: str = "medium"
    source_filename: Optional[str] = None
    generator: str = "rule-based"
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class Question(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    quiz_id: str = Field(foreign_key="quiz.id", index=True)
    position: int = 0
    kind: str
    text: str
    options: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    correct_answer: str = ""
    correct_index: int = 0
    points: int = 1
    provenance: str = "rule-based"
    explanation: Optional[str] = None


class QuizAttempt(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    quiz_id: str = Field(foreign_key="quiz.id", index=True)
    user_id: str = Field(index=True)
    correct_count: int = 0
    total_questions: int = 0
    score: float = 0.0
    answers: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON))
    completed_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
