"""
Shared test fixtures and configuration.
"""

import os
import random
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("STORAGE_TYPE", "memory")
os.environ.setdefault("LLM_API_KEY", "")
os.environ.setdefault("GEMINI_API_KEY", "")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_API_REQUESTS", "true")

from learning_coach.core import ConversationStore, RecommendationExtractor  # noqa: E402
from learning_coach.models import Message, Recommendation, UserInput  # noqa: E402
from learning_coach.storage import MemoryStorage  # noqa: E402


class FakeClock:
    """Clock returning a fixed instant that tests move forward by hand."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def store(memory_storage, clock):
    return ConversationStore(memory_storage, clock=clock)


@pytest.fixture
def extractor():
    return RecommendationExtractor(rng=random.Random(42))


@pytest.fixture
def user_input():
    return UserInput(
        learning_goal="파이썬으로 데이터 분석을 배우고 싶습니다",
        interests=["프로그래밍", "데이터 분석"],
        current_concerns="어디서부터 시작해야 할지 모르겠어요",
        learning_level="beginner",
    )


@pytest.fixture
def messages():
    ts = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
    return [
        Message(id="msg-user-1", role="user", content="데이터 분석 공부 방법을 알려주세요", timestamp=ts),
        Message(
            id="msg-ai-1",
            role="ai",
            content="좋은 목표입니다! 판다스 튜토리얼부터 시작하는 것을 추천합니다.",
            timestamp=ts + timedelta(seconds=5),
        ),
    ]


@pytest.fixture
def recommendations():
    return [
        Recommendation(
            id="rec-1",
            title="판다스 튜토리얼 추천",
            description="판다스 튜토리얼부터 시작하는 것을 추천합니다.",
            category="resource",
            priority="high",
        ),
    ]
