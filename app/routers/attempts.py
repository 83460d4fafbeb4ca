from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from typing import Optional

from app.auth import get_current_user
from app.db import get_session
from app.services import quiz_repository as repo
from app.services.scoring import grade_attempt


router = APIRouter(prefix="/api/attempts", tags=["attempts"])


@router.get("")
def list_attempts(quiz_id: Optional[str] = None, user: dict = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    attempts = repo.list_attempts(session, user["user_id"], quiz_id)
    return {"attempts": [repo.serialize_attempt(a) for a in attempts], "total": len(attempts)}


@router.get("/{attempt_id}")
def get_attempt(attempt_id: str, user: dict = Depends(get_current_user), session: Session = Depends(get_session)):
    attempt = repo.get_attempt(session, attempt_id, user["user_id"])
    if not attempt:
        raise HTTPException(status_code=404, detail="Attempt not found")
    # Re-grade against the stored questions to show per-question results
    questions = repo.get_questions(session, attempt.quiz_id)
    results = grade_attempt(questions, attempt.answers or {})["results"] if questions else []
    return repo.serialize_attempt(attempt, results)
