"""
Storage of generated quizzes and their attempts
"""
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from sqlmodel import Session, select

from app.models import GeneratedQuestion, Question, Quiz, QuizAttempt, QuizUpdate, utcnow

logger = structlog.get_logger()


# ----------------- Quizzes -----------------

def create_quiz(session: Session, user_id: str, title: str, description: str, difficulty: str,
                questions: Sequence[GeneratedQuestion], generator: str,
                source_filename: Optional[str] = None) -> Tuple[Quiz, List[Question]]:
    quiz = Quiz(
        user_id=user_id,
        title=title,
        description=description,
        difficulty=difficulty,
        generator=generator,
        source_filename=source_filename,
    )
    session.add(quiz)
    rows: List[Question] = []
    for position, q in enumerate(questions):
        row = Question(
            id=q.id,
            quiz_id=quiz.id,
            position=position,
            kind=q.kind,
            text=q.text,
            options=list(q.options),
            correct_answer=q.correct_answer,
            correct_index=q.correct_index,
            points=q.points,
            provenance=q.provenance,
            explanation=q.explanation,
        )
        session.add(row)
        rows.append(row)
    session.commit()
    session.refresh(quiz)
    logger.info("quiz_stored", quiz_id=quiz.id, user_id=user_id, questions=len(rows), generator=generator)
    return quiz, rows


def get_quiz(session: Session, quiz_id: str, user_id: Optional[str] = None) -> Optional[Quiz]:
    """Fetch a quiz; with user_id set, quizzes owned by someone else are not found."""
    quiz = session.get(Quiz, quiz_id)
    if quiz is None or (user_id is not None and quiz.user_id != user_id):
        return None
    return quiz


def get_questions(session: Session, quiz_id: str) -> List[Question]:
    stmt = select(Question).where(Question.quiz_id == quiz_id).order_by(Question.position)
    return list(session.exec(stmt).all())


def list_quizzes(session: Session, user_id: str) -> List[Quiz]:
    stmt = select(Quiz).where(Quiz.user_id == user_id).order_by(Quiz.created_at.desc())
    return list(session.exec(stmt).all())


def update_quiz(session: Session, quiz: Quiz, changes: QuizUpdate) -> Quiz:
    data = changes.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in data.items():
        setattr(quiz, key, value)
    quiz.updated_at = utcnow()
    session.add(quiz)
    session.commit()
    session.refresh(quiz)
    return quiz


def delete_quiz(session: Session, quiz: Quiz) -> None:
    quiz_id = quiz.id
    for attempt in session.exec(select(QuizAttempt).where(QuizAttempt.quiz_id == quiz_id)).all():
        session.delete(attempt)
    for question in session.exec(select(Question).where(Question.quiz_id == quiz_id)).all():
        session.delete(question)
    session.delete(quiz)
    session.commit()
    logger.info("quiz_deleted", quiz_id=quiz_id)


# ----------------- Attempts -----------------

def save_attempt(session: Session, quiz: Quiz, user_id: str, answers: Dict[str, str], grade: dict) -> QuizAttempt:
    attempt = QuizAttempt(
        quiz_id=quiz.id,
        user_id=user_id,
        correct_count=grade["correct_count"],
        total_questions=grade["total_questions"],
        score=grade["score"],
        answers=dict(answers),
    )
    session.add(attempt)
    session.commit()
    session.refresh(attempt)
    logger.info("attempt_stored", attempt_id=attempt.id, quiz_id=quiz.id, score=attempt.score)
    return attempt


def get_attempt(session: Session, attempt_id: str, user_id: str) -> Optional[QuizAttempt]:
    attempt = session.get(QuizAttempt, attempt_id)
    if attempt is None or attempt.user_id != user_id:
        return None
    return attempt


def list_attempts(session: Session, user_id: str, quiz_id: Optional[str] = None) -> List[QuizAttempt]:
    stmt = select(QuizAttempt).where(QuizAttempt.user_id == user_id)
    if quiz_id:
        stmt = stmt.where(QuizAttempt.quiz_id == quiz_id)
    return list(session.exec(stmt.order_by(QuizAttempt.completed_at.desc())).all())


# ----------------- Serialization -----------------

def serialize_question(q: Question, include_answers: bool = True) -> dict:
    data = {
        "id": q.id,
        "type": q.kind,
        "question_text": q.text,
        "options": list(q.options or []),
        "points": q.points,
        "order": q.position,
    }
    if include_answers:
        data.update({
            "correct_answer": q.correct_answer,
            "correct_index": q.correct_index,
            "explanation": q.explanation,
            "provenance": q.provenance,
        })
    return data


def serialize_quiz(quiz: Quiz, questions: Sequence[Question], include_answers: bool = True) -> dict:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "difficulty": quiz.difficulty,
        "generator": quiz.generator,
        "source_filename": quiz.source_filename,
        "total_questions": len(questions),
        "created_at": quiz.created_at.isoformat(),
        "updated_at": quiz.updated_at.isoformat(),
        "questions": [serialize_question(q, include_answers) for q in questions],
    }


def serialize_attempt(attempt: QuizAttempt, results: Optional[list] = None) -> dict:
    data = {
        "id": attempt.id,
        "quiz_id": attempt.quiz_id,
        "correct_count": attempt.correct_count,
        "total_questions": attempt.total_questions,
        "score": attempt.score,
        "answers": dict(attempt.answers or {}),
        "completed_at": attempt.completed_at.isoformat(),
    }
    if results is not None:
        data["results"] = results
    return data
