import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Cookie, Depends, Form, Request, Response
from fastapi.responses import JSONResponse

from .config import settings
from .database import PersistenceError, TestStore
from .models import TestMode, TestResult, TestSettings, WordPair, WordResult
from .projection import summarize
from .session import TestSession
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependencies ---
def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def get_store(request: Request) -> TestStore:
    return request.app.state.store


def get_vocab_manager(request: Request) -> VocabularyManager:
    return request.app.state.vocab_manager


def get_sessions(request: Request) -> Dict[str, TestSession]:
    return request.app.state.sessions


def get_active_session(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: Dict[str, TestSession] = Depends(get_sessions),
) -> Optional[TestSession]:
    if not session_id or session_id not in sessions:
        return None
    session = sessions[session_id]
    if datetime.now() - session.created_at > timedelta(
        minutes=settings.SESSION_TIMEOUT_MINUTES
    ):
        del sessions[session_id]
        return None
    return session


# --- Helpers ---
def attach_store(session: TestSession, store: TestStore):
    """Persists progress after every answered word and the final result once."""

    def save_result(result: TestResult):
        store.append_result(result)
        store.delete_progress(result.vocabulary_id)

    session.subscribe_progress(store.save_progress)
    session.subscribe_result(save_result)


def parse_word_ids(word_ids: Optional[str]) -> Optional[List[int]]:
    if not word_ids:
        return None
    return [int(part) for part in word_ids.split(",") if part.strip()]


def session_payload(session: TestSession) -> Dict[str, Any]:
    presented = session.presented
    word = None
    if presented is not None:
        word = {
            "id": presented.id,
            "prompt": presented.original,
            # Peek mode reveals the answer for self assessment
            "answer": presented.translation if session.is_peek_mode else None,
        }
    word_states = session.state.per_word_state.values()
    return {
        "vocabulary_id": session.vocabulary_id,
        "done": session.done,
        "word": word,
        "remaining": session.remaining_count,
        "total": len(word_states),
        "attempts": sum(len(w.attempts) for w in word_states),
        "settings": session.settings.to_json_dict(),
    }


def result_payload(result: TestResult) -> Dict[str, Any]:
    return {"result": result.to_json_dict(), "summary": summarize(result).model_dump()}


def not_saved(session: TestSession, error: PersistenceError) -> JSONResponse:
    logger.error(f"Progress of vocabulary {session.vocabulary_id} not saved: {error}")
    return JSONResponse(
        {"error": "Progress not saved", "state": session_payload(session)},
        status_code=503,
    )


def invalid_session() -> JSONResponse:
    return JSONResponse({"error": "Session invalid"}, status_code=401)


# --- Vocabulary routes ---
@router.get("/api/vocabularies")
async def list_vocabularies(manager: VocabularyManager = Depends(get_vocab_manager)):
    return manager.get_vocabularies()


@router.get("/api/vocabularies/{vocabulary_id}/progress")
async def get_progress(vocabulary_id: int, store: TestStore = Depends(get_store)):
    try:
        snapshot = store.load_progress(vocabulary_id)
    except PersistenceError as e:
        return JSONResponse({"error": str(e)}, status_code=503)
    if snapshot is None:
        return JSONResponse({"error": "No saved progress"}, status_code=404)
    return snapshot.to_json_dict()


@router.get("/api/vocabularies/{vocabulary_id}/results")
async def get_results(vocabulary_id: int, store: TestStore = Depends(get_store)):
    try:
        results = store.list_results(vocabulary_id)
    except PersistenceError as e:
        return JSONResponse({"error": str(e)}, status_code=503)
    return [result_payload(result) for result in results]


@router.put("/api/vocabularies/{vocabulary_id}/words/{word_id}")
async def edit_word(
    vocabulary_id: int,
    word_id: int,
    original: str = Form(...),
    translation: str = Form(...),
    manager: VocabularyManager = Depends(get_vocab_manager),
    sessions: Dict[str, TestSession] = Depends(get_sessions),
):
    word = WordPair(id=word_id, original=original, translation=translation)
    if not manager.update_word(vocabulary_id, word):
        return JSONResponse({"error": "Word not found"}, status_code=404)

    for session in sessions.values():
        if session.vocabulary_id == vocabulary_id:
            session.replace_word(word)
    return word.to_json_dict()


@router.delete("/api/vocabularies/{vocabulary_id}/words/{word_id}")
async def delete_word(
    vocabulary_id: int,
    word_id: int,
    manager: VocabularyManager = Depends(get_vocab_manager),
    sessions: Dict[str, TestSession] = Depends(get_sessions),
):
    if not manager.remove_word(vocabulary_id, word_id):
        return JSONResponse({"error": "Word not found"}, status_code=404)

    failed = None
    for session in list(sessions.values()):
        if session.vocabulary_id != vocabulary_id:
            continue
        try:
            session.remove_word(word_id)
        except PersistenceError as e:
            failed = (session, e)
    if failed is not None:
        return not_saved(*failed)
    return {"status": "success"}


# --- Test routes ---
@router.post("/start")
async def start_test(
    vocabulary_id: int = Form(...),
    mode: TestMode = Form(TestMode.WRITE),
    reverse_translations: bool = Form(False),
    repeat_invalid: bool = Form(False),
    strict_match: bool = Form(False),
    word_ids: Optional[str] = Form(None),
    use_saved_progress: bool = Form(False),
    session_id: Optional[str] = Depends(get_session_id),
    sessions: Dict[str, TestSession] = Depends(get_sessions),
    store: TestStore = Depends(get_store),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    if manager.get_vocabulary(vocabulary_id) is None:
        return JSONResponse({"error": "Unknown vocabulary"}, status_code=404)
    try:
        selected_ids = parse_word_ids(word_ids)
    except ValueError:
        return JSONResponse({"error": "Invalid word ids"}, status_code=400)

    words = manager.get_words(vocabulary_id, selected_ids)
    if not words:
        return JSONResponse({"error": "No words to test"}, status_code=400)

    # Starting over discards the running test; its progress stays saved
    if session_id:
        sessions.pop(session_id, None)

    try:
        if use_saved_progress:
            resume_from = store.load_progress(vocabulary_id)
        else:
            resume_from = None
            store.finalize_progress(vocabulary_id)
    except PersistenceError as e:
        return JSONResponse({"error": str(e)}, status_code=503)

    test_settings = TestSettings(
        mode=mode,
        reverse_translations=reverse_translations,
        repeat_invalid=repeat_invalid,
        strict_match=strict_match,
    )
    session = TestSession(vocabulary_id, test_settings)
    attach_store(session, store)
    new_id = str(uuid.uuid4())
    sessions[new_id] = session

    try:
        session.start(words, resume_from=resume_from)
        response = JSONResponse(session_payload(session))
    except PersistenceError as e:
        response = not_saved(session, e)

    logger.info(
        f"New session: {new_id} [Vocabulary: {vocabulary_id}, Mode: {mode.value}]"
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=new_id,
        httponly=True,
        samesite="Lax",
    )
    return response


@router.get("/api/test/current")
async def get_current(session: Optional[TestSession] = Depends(get_active_session)):
    if session is None:
        return invalid_session()
    return session_payload(session)


@router.post("/api/test/answer")
async def submit_answer(
    answer: str = Form(""),
    session: Optional[TestSession] = Depends(get_active_session),
):
    if session is None:
        return invalid_session()
    if session.is_peek_mode:
        return JSONResponse({"error": "Test is in peek mode"}, status_code=400)
    if session.presented is None:
        return JSONResponse({"error": "No word to answer"}, status_code=400)

    expected = session.presented.translation
    try:
        valid = session.answer(answer)
    except PersistenceError as e:
        return not_saved(session, e)
    return {"valid": valid, "expected": expected, "state": session_payload(session)}


@router.post("/api/test/assess")
async def assess_word(
    correct: Optional[bool] = Form(None),
    result: Optional[int] = Form(None),
    session: Optional[TestSession] = Depends(get_active_session),
):
    """Self assessment of a revealed word, as a boolean or a graded result."""
    if session is None:
        return invalid_session()
    if correct is None and result is None:
        return JSONResponse({"error": "Missing assessment"}, status_code=400)
    if session.presented is None:
        return JSONResponse({"error": "No word to assess"}, status_code=400)

    if result is not None:
        try:
            assessment = WordResult(result)
        except ValueError:
            return JSONResponse({"error": "Invalid result"}, status_code=400)
    else:
        assessment = correct

    try:
        session.submit_attempt(assessment)
    except PersistenceError as e:
        return not_saved(session, e)
    return session_payload(session)


@router.post("/api/test/skip")
async def skip_word(session: Optional[TestSession] = Depends(get_active_session)):
    if session is None:
        return invalid_session()
    try:
        session.skip()
    except PersistenceError as e:
        return not_saved(session, e)
    return session_payload(session)


@router.put("/api/test/settings")
async def update_settings(
    mode: TestMode = Form(TestMode.WRITE),
    reverse_translations: bool = Form(False),
    repeat_invalid: bool = Form(False),
    strict_match: bool = Form(False),
    session: Optional[TestSession] = Depends(get_active_session),
):
    if session is None:
        return invalid_session()
    session.change_settings(
        TestSettings(
            mode=mode,
            reverse_translations=reverse_translations,
            repeat_invalid=repeat_invalid,
            strict_match=strict_match,
        )
    )
    return session_payload(session)


@router.get("/api/test/result")
async def get_result(session: Optional[TestSession] = Depends(get_active_session)):
    if session is None:
        return invalid_session()
    if session.result is None:
        return JSONResponse({"error": "Test not finished"}, status_code=400)
    return result_payload(session.result)


@router.post("/api/test/stop")
async def stop_test(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    session: Optional[TestSession] = Depends(get_active_session),
    sessions: Dict[str, TestSession] = Depends(get_sessions),
):
    if session is None:
        return invalid_session()
    try:
        session.finish()
    except PersistenceError as e:
        return not_saved(session, e)

    sessions.pop(session_id, None)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    if session.result is None:
        return {"status": "success"}
    return result_payload(session.result)
