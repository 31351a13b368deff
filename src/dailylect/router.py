import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Cookie, Depends, Form, Header, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import StorageUnavailable
from .globals import QuizSession, Services
from .models import AnswerRecord
from .progress import round_half_up
from .quiz import QuizFactory, grade_quiz

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependencies ---
def get_services(request: Request) -> Services:
    return request.app.state.services


def get_user_id(
    user_id: Optional[str] = Header(None, alias=settings.USER_HEADER)
) -> Optional[str]:
    return user_id


def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def _unauthenticated():
    return JSONResponse({"error": "Not signed in"}, status_code=401)


def _dump(model):
    return model.model_dump(mode="json", by_alias=True)


# --- Catalog ---
@router.get("/")
async def root():
    return {"message": f"{settings.PROJECT_NAME} API running"}


@router.get("/api/dialects")
async def list_dialects(services: Services = Depends(get_services)):
    return [_dump(d) for d in services.catalog.get_dialects()]


@router.get("/api/dialects/{dialect_id}")
async def get_dialect(dialect_id: str, services: Services = Depends(get_services)):
    dialect = services.catalog.get_dialect(dialect_id)
    if dialect is None:
        return JSONResponse({"error": "Unknown dialect"}, status_code=404)
    return {
        **_dump(dialect),
        "words": [_dump(w) for w in services.catalog.get_words(dialect_id)],
    }


@router.get("/api/dialects/{dialect_id}/word-of-the-day")
async def word_of_the_day(dialect_id: str, services: Services = Depends(get_services)):
    word = services.catalog.word_of_the_day(dialect_id)
    if word is None:
        return JSONResponse({"error": "Unknown dialect"}, status_code=404)
    return _dump(word)


@router.get("/api/words/{word_id}")
async def get_word(word_id: str, services: Services = Depends(get_services)):
    word = services.catalog.get_word(word_id)
    if word is None:
        return JSONResponse({"error": "Unknown word"}, status_code=404)
    return _dump(word)


# --- Login ledger ---
# Routes that reach storage are plain functions so they run in the threadpool.
@router.post("/api/login")
def record_login(
    user_id: Optional[str] = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    if not user_id:
        return _unauthenticated()
    created = services.ledger.record_login(user_id)
    access = services.progress.get_access(user_id)
    return {"created": created, **_dump(access)}


@router.get("/api/access")
def get_access(
    user_id: Optional[str] = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    if not user_id:
        return _unauthenticated()
    return _dump(services.progress.get_access(user_id))


# --- Quiz ---
@router.post("/api/quiz/start")
def start_quiz_session(
    mode: str = Form("standard"),
    user_id: Optional[str] = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    if not user_id:
        return _unauthenticated()
    access = services.progress.get_access(user_id)
    if not access.has_quiz_access:
        return JSONResponse(
            {"error": "Quiz locked", **_dump(access)}, status_code=403
        )

    generator = QuizFactory.create(mode, services.catalog)
    questions = generator.generate(settings.QUIZ_SIZE)
    if not questions:
        return JSONResponse({"error": "Word catalog is empty"}, status_code=500)

    session = QuizSession(
        user_id=user_id,
        quiz_id=str(uuid4()),
        questions=questions,
        created_at=datetime.now(timezone.utc),
        mode=mode,
    )
    services.sessions.start(session)
    logger.info(f"New quiz session: {session.quiz_id} [User: {user_id}, Mode: {mode}]")

    response = JSONResponse(
        {"quizId": session.quiz_id, "totalQuestions": len(questions)}
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.quiz_id,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/api/quiz/{index}")
async def get_question_data(
    index: int,
    session_id: Optional[str] = Depends(get_session_id),
    user_id: Optional[str] = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    session = services.sessions.get_active(session_id, user_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    if not (0 <= index < len(session.questions)):
        return JSONResponse({"error": "Index error"}, status_code=404)

    question = session.questions[index]
    record = session.answers[index] if index < len(session.answers) else None
    word = question.word
    return {
        "questionId": question.id,
        "word": word.word,
        "dialectId": word.dialect_id,
        "pronunciation": word.pronunciation,
        "options": question.options,
        "currentIndex": index,
        "totalQuestions": len(session.questions),
        "answerRecord": _dump(record) if record else None,
    }


@router.post("/api/quiz/answer")
async def submit_answer(
    selected_option_index: int = Form(...),
    current_index: int = Form(...),
    session_id: Optional[str] = Depends(get_session_id),
    user_id: Optional[str] = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    session = services.sessions.get_active(session_id, user_id)
    if not session or not (0 <= current_index < len(session.questions)):
        return JSONResponse({"error": "Invalid session"}, status_code=401)
    if current_index < len(session.answers):
        return JSONResponse({"error": "Already answered"}, status_code=400)
    if current_index > len(session.answers):
        return JSONResponse({"error": "Answer questions in order"}, status_code=400)

    question = session.questions[current_index]
    if not (0 <= selected_option_index < len(question.options)):
        return JSONResponse({"error": "Invalid option"}, status_code=400)

    user_answer = question.options[selected_option_index]
    record = AnswerRecord(
        question_id=question.id,
        user_answer=user_answer,
        correct_answer=question.correct_answer,
        is_correct=user_answer == question.correct_answer,
    )
    session.answers.append(record)
    return _dump(record)


@router.post("/api/quiz/finish")
def finish_quiz(
    session_id: Optional[str] = Depends(get_session_id),
    user_id: Optional[str] = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    session = services.sessions.get_active(session_id, user_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    if len(session.answers) < len(session.questions):
        return JSONResponse(
            {"error": "Quiz not complete", "nextIndex": len(session.answers)},
            status_code=400,
        )

    if session.result is None:
        session.result = grade_quiz(
            session.questions,
            {a.question_id: a.user_answer for a in session.answers},
            user_id=session.user_id,
            quiz_id=session.quiz_id,
        )

    if not session.saved:
        try:
            services.results.save_result(session.result)
            session.saved = True
            services.sessions.discard(session.quiz_id)
        except StorageUnavailable as e:
            logger.warning(f"Quiz {session.quiz_id} graded but not saved: {e}")

    return {
        "result": _dump(session.result),
        "percentage": round_half_up(session.result.percentage),
        "saved": session.saved,
        "retryable": not session.saved,
    }


@router.post("/api/quiz/reset")
async def reset_session(
    session_id: Optional[str] = Depends(get_session_id),
    services: Services = Depends(get_services),
):
    services.sessions.discard(session_id)
    response = JSONResponse({"status": "success"})
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


# --- Progress ---
@router.get("/api/progress")
def get_progress(
    user_id: Optional[str] = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    if not user_id:
        return _unauthenticated()
    progress = services.progress.get_progress(user_id)
    access = services.progress.get_access(user_id)
    return {**_dump(progress), "access": _dump(access)}


@router.get("/api/learned-words")
def get_learned_words(
    user_id: Optional[str] = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    if not user_id:
        return _unauthenticated()
    return [_dump(w) for w in services.progress.get_learned_words(user_id)]
