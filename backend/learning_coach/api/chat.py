"""
Chat API endpoints - Run a consultation and move it in and out of the history.
"""

from fastapi import APIRouter, HTTPException, Depends, status

from ..models import ChatTurnRequest, SaveResponse, SessionSnapshot, UserInput
from ..core import CoachService, ConversationStore, SessionRegistry, SessionStats
from ..core.exceptions import CoachNotConfiguredError, CoachUpstreamError, InvalidUserInputError
from ..core.session_state import SessionState
from .deps import (
    get_coach, get_conversation_store, get_session_registry, get_stats, require_session
)

router = APIRouter(prefix="/chat", tags=["chat"])


async def _coach_turn(session: SessionState, coach: CoachService, stats: SessionStats, history) -> None:
    """
    Ask the coach and record the reply, or an apology turn if the call failed.

    Raises:
        HTTPException: 400 for invalid input, 503 when no LLM is configured
    """
    try:
        reply = await coach.ask(session.user_input, history)
    except InvalidUserInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CoachNotConfiguredError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except CoachUpstreamError as e:
        session.log.warning(f"Coach call failed: {e}")
        session.add_error_turn(str(e))
        await stats.record(messages=1)
        return

    session.receive_ai_turn(reply)
    await stats.record(messages=1, recommendations=len(session.recommendations))


@router.post("/sessions", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def start_session(
    user_input: UserInput,
    registry: SessionRegistry = Depends(get_session_registry),
    coach: CoachService = Depends(get_coach),
    stats: SessionStats = Depends(get_stats),
):
    """
    Start a consultation from the input form and fetch the first advice.

    Args:
        user_input: Goal, interests and concerns from the form

    Returns:
        SessionSnapshot: Session with the greeting turn and the coach reply
    """
    try:
        coach.validate_input(user_input)
    except InvalidUserInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    session = registry.create()
    session.submit(user_input)
    session.add_user_message(coach.initial_user_message(user_input))

    try:
        # The greeting is not sent as history; the profile is already in the prompt
        await _coach_turn(session, coach, stats, history=[])
    except HTTPException:
        registry.discard(session.session_id)
        raise

    # Counted only once the session survived its first coach call
    await stats.record(conversations=1, messages=1)
    return session.snapshot()


@router.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Return the current state of a session."""
    return require_session(registry, session_id).snapshot()


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Drop a session. Saved history is not affected."""
    if not registry.discard(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )


@router.post("/sessions/{session_id}/messages", response_model=SessionSnapshot)
async def send_message(
    session_id: str,
    turn: ChatTurnRequest,
    registry: SessionRegistry = Depends(get_session_registry),
    coach: CoachService = Depends(get_coach),
    stats: SessionStats = Depends(get_stats),
):
    """
    Ask a follow-up question within a session.

    The whole conversation so far, including this question, is sent as
    history. Requests are not cancelled: concurrent questions each append
    their reply when it arrives.
    """
    session = require_session(registry, session_id)
    if session.user_input is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Session has no consultation input"
        )

    if not turn.content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is empty")

    session.add_user_message(turn.content.strip())
    await stats.record(messages=1)
    await _coach_turn(session, coach, stats, history=session.history())
    return session.snapshot()


@router.post("/sessions/{session_id}/save", response_model=SaveResponse)
async def save_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
    store: ConversationStore = Depends(get_conversation_store),
):
    """
    Save the session into the history, or update it if it was saved before.

    Storage failures do not fail the request; ``ok``/``failure`` tell the
    client whether to show a warning.
    """
    session = require_session(registry, session_id)
    try:
        conversation_id = await session.save(store)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    result = store.last_result
    return SaveResponse(
        conversation_id=conversation_id,
        ok=result.ok,
        failure=result.failure.value if result.failure else None,
    )


@router.post("/sessions/{session_id}/load/{conversation_id}", response_model=SessionSnapshot)
async def load_into_session(
    session_id: str,
    conversation_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
    store: ConversationStore = Depends(get_conversation_store),
):
    """Continue a saved conversation in an existing session."""
    session = require_session(registry, session_id)
    record = store.get(conversation_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Conversation {conversation_id} not found"
        )
    session.load_conversation(record)
    return session.snapshot()


@router.post("/sessions/resume/{conversation_id}", response_model=SessionSnapshot,
             status_code=status.HTTP_201_CREATED)
async def resume_conversation(
    conversation_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
    store: ConversationStore = Depends(get_conversation_store),
):
    """Open a saved conversation in a new session."""
    record = store.get(conversation_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Conversation {conversation_id} not found"
        )
    session = registry.create()
    session.load_conversation(record)
    return session.snapshot()
