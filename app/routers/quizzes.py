from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlmodel import Session
from typing import Optional
from starlette.concurrency import run_in_threadpool
import structlog

from app.auth import get_current_user
from app.db import get_session
from app.middleware.rate_limit import generation_limit
from app.models import AttemptSubmission, GenerateQuizRequest, QuizGenerationRequest, QuizUpdate
from app.routers.documents import read_upload
from app.services import quiz_repository as repo
from app.services.extraction import DocumentError, extract_document_text
from app.services.quiz_generation import generate_quiz
from app.services.scoring import grade_attempt


router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = structlog.get_logger()


def _generate_and_store(session: Session, user: dict, text: str, title: str, description: str,
                        difficulty: str, question_count: int, source_filename: Optional[str] = None) -> dict:
    request = QuizGenerationRequest(
        title=title,
        description=description,
        difficulty=difficulty,
        question_count=question_count,
    )
    try:
        draft, strategy = generate_quiz(text, request)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not draft.questions:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No valid questions could be produced from this content",
        )

    quiz, questions = repo.create_quiz(
        session,
        user_id=user["user_id"],
        title=title,
        description=description,
        difficulty=difficulty,
        questions=draft.questions,
        generator=strategy,
        source_filename=source_filename,
    )
    return {
        "success": True,
        "message": f"Quiz generated successfully with {len(questions)} questions",
        "data": repo.serialize_quiz(quiz, questions),
    }


# ----------------- Generation -----------------

@router.post("/upload", status_code=status.HTTP_201_CREATED)
@generation_limit()
async def upload_and_generate(
    request: Request,
    file: UploadFile = File(...),
    title: str = Form(""),
    description: str = Form(""),
    difficulty: str = Form("medium"),
    question_count: int = Form(0),
    user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
    data = await read_upload(file)
    try:
        text = await run_in_threadpool(extract_document_text, file.filename, data)
    except DocumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info("document_uploaded", filename=file.filename, size=len(data), chars=len(text))
    # Generation may wait on remote models, so it runs off the event loop
    return await run_in_threadpool(
        _generate_and_store, session, user, text, title.strip(), description, difficulty,
        question_count, source_filename=file.filename,
    )


@router.post("/generate", status_code=status.HTTP_201_CREATED)
@generation_limit()
def generate_from_content(
    request: Request,
    payload: GenerateQuizRequest,
    user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return _generate_and_store(session, user, payload.content, payload.title, payload.description,
                               payload.difficulty, payload.question_count)


# ----------------- CRUD -----------------

@router.get("")
def list_quizzes(user: dict = Depends(get_current_user), session: Session = Depends(get_session)):
    quizzes = repo.list_quizzes(session, user["user_id"])
    return {
        "quizzes": [repo.serialize_quiz(q, repo.get_questions(session, q.id)) for q in quizzes],
        "total": len(quizzes),
    }


@router.get("/{quiz_id}")
def get_quiz(quiz_id: str, user: dict = Depends(get_current_user), session: Session = Depends(get_session)):
    quiz = repo.get_quiz(session, quiz_id, user["user_id"])
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return repo.serialize_quiz(quiz, repo.get_questions(session, quiz.id))


@router.put("/{quiz_id}")
def update_quiz(quiz_id: str, payload: QuizUpdate, user: dict = Depends(get_current_user),
                session: Session = Depends(get_session)):
    quiz = repo.get_quiz(session, quiz_id, user["user_id"])
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    if payload.title is not None and not payload.title.strip():
        raise HTTPException(status_code=400, detail="Title must not be empty")
    quiz = repo.update_quiz(session, quiz, payload)
    return repo.serialize_quiz(quiz, repo.get_questions(session, quiz.id))


@router.delete("/{quiz_id}")
def delete_quiz(quiz_id: str, user: dict = Depends(get_current_user), session: Session = Depends(get_session)):
    quiz = repo.get_quiz(session, quiz_id, user["user_id"])
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    repo.delete_quiz(session, quiz)
    return {"success": True, "message": "Quiz deleted successfully"}


# ----------------- Taking -----------------

@router.get("/{quiz_id}/take")
def take_quiz(quiz_id: str, user: dict = Depends(get_current_user), session: Session = Depends(get_session)):
    # Any signed-in user holding the id may take a quiz
    quiz = repo.get_quiz(session, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return repo.serialize_quiz(quiz, repo.get_questions(session, quiz.id), include_answers=False)


@router.post("/{quiz_id}/submit")
def submit_attempt(quiz_id: str, payload: AttemptSubmission, user: dict = Depends(get_current_user),
                   session: Session = Depends(get_session)):
    quiz = repo.get_quiz(session, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    questions = repo.get_questions(session, quiz.id)
    grade = grade_attempt(questions, payload.answers)
    attempt = repo.save_attempt(session, quiz, user["user_id"], payload.answers, grade)
    return {
        "success": True,
        "message": "Quiz submitted successfully",
        "data": repo.serialize_attempt(attempt, grade["results"]),
    }
