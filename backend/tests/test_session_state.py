"""
Unit tests for SessionState, SessionRegistry and SessionStats.
"""

import json

import pytest

from learning_coach.core import ConversationStore, SessionRegistry, SessionState, SessionStats
from learning_coach.models import SessionView
from learning_coach.storage import MemoryStorage, StorageFailure


AI_REPLY = (
    "좋은 목표네요!\n"
    "1. 파이썬 공식 튜토리얼을 먼저 읽어보시길 추천합니다.\n"
    "2. 매일 30분씩 캐글 예제를 활용해 연습해 보세요.\n"
    "3. 스터디 그룹에 참여하는 것을 제안합니다.\n"
    "4. 작은 프로젝트로 배운 내용을 정리하는 것을 추천합니다."
)


@pytest.fixture
def session(extractor):
    return SessionState(extractor, session_id="session-1")


class TestSessionState:
    """Tests for the live consultation state."""

    def test_submit_resets_state(self, session, user_input):
        session.add_user_message("이전 질문")
        session.current_conversation_id = "conv-old"
        session.current_view = SessionView.HISTORY

        session.submit(user_input)

        assert session.user_input == user_input
        assert session.messages == []
        assert session.recommendations == []
        assert session.current_conversation_id is None
        assert session.current_view == SessionView.CHAT

    def test_receive_ai_turn_refreshes_recommendations(self, session, user_input):
        session.submit(user_input)

        message = session.receive_ai_turn(AI_REPLY)

        assert message.role == "ai"
        assert session.messages[-1] is message
        assert [rec.id for rec in session.recommendations] == ["rec-1", "rec-2", "rec-3", "rec-4"]

    def test_missing_reply_changes_nothing(self, session, user_input):
        session.submit(user_input)
        session.receive_ai_turn(AI_REPLY)
        before = list(session.recommendations)

        assert session.receive_ai_turn(None) is None
        assert len(session.messages) == 1
        assert session.recommendations == before

    def test_empty_reply_yields_defaults(self, session, user_input):
        session.submit(user_input)
        session.receive_ai_turn("")
        assert [rec.id for rec in session.recommendations][0] == "rec-default-1"

    def test_error_turn_keeps_recommendations(self, session, user_input):
        session.submit(user_input)
        session.receive_ai_turn(AI_REPLY)
        before = list(session.recommendations)

        message = session.add_error_turn("네트워크 오류")

        assert message.role == "ai"
        assert message.content == "죄송합니다. 오류가 발생했습니다: 네트워크 오류"
        assert session.recommendations == before

    def test_message_ids_unique(self, session):
        first = session.add_user_message("a")
        second = session.add_user_message("b")
        assert first.id != second.id
        assert first.id.startswith("msg-user-")

    def test_history_is_a_copy(self, session):
        session.add_user_message("질문")
        history = session.history()
        history.clear()
        assert len(session.messages) == 1

    def test_snapshot(self, session, user_input):
        session.submit(user_input)
        session.add_user_message("질문")

        snapshot = session.snapshot()

        assert snapshot.session_id == "session-1"
        dumped = snapshot.model_dump(mode="json", by_alias=True)
        assert dumped["userInput"]["learningGoal"] == user_input.learning_goal
        assert dumped["currentView"] == "chat"

    def test_reset(self, session, user_input):
        session.submit(user_input)
        session.add_user_message("질문")

        session.reset()

        assert session.user_input is None
        assert session.messages == []


class TestSessionSave:
    """Tests for saving a session into the history."""

    @pytest.mark.asyncio
    async def test_save_without_input(self, session, store):
        with pytest.raises(ValueError):
            await session.save(store)

    @pytest.mark.asyncio
    async def test_first_save_then_update(self, session, store, clock, user_input):
        session.submit(user_input)
        session.add_user_message("질문")
        session.receive_ai_turn(AI_REPLY)

        conversation_id = await session.save(store)
        assert session.current_conversation_id == conversation_id

        session.add_user_message("추가 질문")
        clock.advance(minutes=1)
        again = await session.save(store)

        assert again == conversation_id
        assert len(store) == 1
        record = store.get(conversation_id)
        assert len(record.messages) == 3
        assert record.updated_at == clock.now

    @pytest.mark.asyncio
    async def test_failed_first_save_is_retried_as_new(self, session, clock, user_input):
        storage = MemoryStorage(available=False)
        store = ConversationStore(storage, clock=clock)
        session.submit(user_input)
        session.receive_ai_turn(AI_REPLY)

        await session.save(store)
        assert store.last_result.failure == StorageFailure.UNAVAILABLE
        assert session.current_conversation_id is None

        storage.available = True
        conversation_id = await session.save(store)

        assert store.last_result.ok
        assert session.current_conversation_id == conversation_id
        assert store.get(conversation_id) is not None

    @pytest.mark.asyncio
    async def test_load_conversation_continues_record(self, session, store, user_input, messages, recommendations):
        conversation_id = await store.save(user_input, messages, recommendations)
        session.current_view = SessionView.EXPORT

        session.load_conversation(store.get(conversation_id))

        assert session.current_conversation_id == conversation_id
        assert session.messages == messages
        assert session.recommendations == recommendations
        assert session.current_view == SessionView.CHAT

        session.add_user_message("이어서 질문")
        await session.save(store)
        assert len(store) == 1
        assert len(store.get(conversation_id).messages) == 3


class TestSessionRegistry:
    """Tests for SessionRegistry."""

    def test_create_get_discard(self, extractor):
        registry = SessionRegistry(extractor)

        session = registry.create()

        assert registry.get(session.session_id) is session
        assert len(registry) == 1
        assert registry.discard(session.session_id)
        assert not registry.discard(session.session_id)
        assert registry.get(session.session_id) is None

    def test_least_recently_used_session_is_evicted(self, extractor):
        registry = SessionRegistry(extractor, max_sessions=2)
        first = registry.create()
        second = registry.create()

        # Reading the first session makes the second one the oldest
        assert registry.get(first.session_id) is first
        third = registry.create()

        assert len(registry) == 2
        assert registry.get(second.session_id) is None
        assert registry.get(first.session_id) is first
        assert registry.get(third.session_id) is third

    def test_max_sessions_must_be_positive(self, extractor):
        with pytest.raises(ValueError):
            SessionRegistry(extractor, max_sessions=0)


class TestSessionStats:
    """Tests for usage counters."""

    @pytest.mark.asyncio
    async def test_record_and_reload(self, memory_storage):
        stats = SessionStats(memory_storage)
        await stats.record(conversations=1, messages=2, recommendations=3)
        await stats.record(messages=1)

        reloaded = SessionStats(memory_storage)
        await reloaded.load()

        assert reloaded.total_conversations == 1
        assert reloaded.total_messages == 3
        assert reloaded.total_recommendations == 3
        assert reloaded.last_active_date == stats.last_active_date

    @pytest.mark.asyncio
    async def test_corrupt_stats_start_from_zero(self, memory_storage):
        await memory_storage.set("ai-learning-coach-stats", "not json")
        stats = SessionStats(memory_storage)

        await stats.load()

        assert stats.as_dict()["totalMessages"] == 0

    @pytest.mark.asyncio
    async def test_write_failure_keeps_counting(self):
        stats = SessionStats(MemoryStorage(available=False))

        await stats.load()
        await stats.record(messages=2)

        assert stats.total_messages == 2

    @pytest.mark.asyncio
    async def test_stored_shape(self, memory_storage):
        stats = SessionStats(memory_storage)
        await stats.record(conversations=1)

        raw = json.loads(await memory_storage.get("ai-learning-coach-stats"))

        assert set(raw) == {"totalConversations", "totalMessages", "totalRecommendations", "lastActiveDate"}
