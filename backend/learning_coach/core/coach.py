"""
Coach Service - Builds the coaching prompt and asks the LLM for advice.
"""

import logging
from typing import List, Optional, Sequence

import httpx

from ..llm.base import LLMProvider, LLMMessage
from ..models import Message, UserInput
from .exceptions import CoachNotConfiguredError, CoachUpstreamError, InvalidUserInputError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """당신은 전문적인 AI 학습 코치입니다. 사용자의 학습 목표, 관심 분야, 현재 고민을 바탕으로 맞춤형 학습 조언을 제공해주세요.

응답 형식:
1. 먼저 사용자의 상황에 대한 공감과 격려를 표현해주세요.
2. 구체적이고 실행 가능한 학습 계획을 제시해주세요.
3. 단계별 학습 방법을 제안해주세요.
4. 추천 자료나 활동을 제시해주세요.

응답은 따뜻하고 격려하는 톤으로 작성하되, 구체적이고 실용적인 조언을 포함해주세요.
한국어로 답변해주세요."""

EMPTY_REPLY_ERROR = "AI로부터 응답을 받지 못했습니다."


def describe_llm_error(error: Exception) -> str:
    """Turn a provider failure into a message that can be shown to the user."""
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        if status_code in (401, 403):
            return "API 키가 유효하지 않습니다."
        if status_code == 429:
            return "API 사용 한도를 초과했습니다."
    if isinstance(error, (httpx.TransportError, httpx.TimeoutException)):
        return "네트워크 연결에 문제가 있습니다."
    return str(error) or "알 수 없는 오류가 발생했습니다."


class CoachService:
    """Asks the configured LLM for learning advice."""

    def __init__(self, llm_provider: Optional[LLMProvider], temperature: float = 0.7):
        """
        Args:
            llm_provider: Provider to call, or None when no API key is configured
            temperature: Sampling temperature for coaching replies
        """
        self.llm_provider = llm_provider
        self.temperature = temperature

    @property
    def configured(self) -> bool:
        return self.llm_provider is not None

    @staticmethod
    def validate_input(user_input: UserInput) -> None:
        """
        Raises:
            InvalidUserInputError: If goal, concerns or interests are missing
        """
        if (not user_input.learning_goal.strip()
                or not user_input.current_concerns.strip()
                or not user_input.interests):
            raise InvalidUserInputError("필수 입력 항목이 누락되었습니다.")

    @staticmethod
    def initial_user_message(user_input: UserInput) -> str:
        """Opening turn posted on behalf of the user when a consultation starts."""
        lines = [
            "안녕하세요! 저는 다음과 같은 상황입니다:",
            "",
            f"📚 학습 목표: {user_input.learning_goal}",
            "",
            f"🎯 관심 분야: {', '.join(user_input.interests)}",
            "",
            f"😰 현재 고민: {user_input.current_concerns}",
            "",
        ]
        if user_input.learning_level:
            lines.append(f"📊 학습 수준: {user_input.learning_level}")
        if user_input.time_available:
            lines.append(f"⏰ 가용 시간: {user_input.time_available}")
        lines += ["", "맞춤형 학습 조언을 부탁드립니다!"]
        return "\n".join(lines)

    @staticmethod
    def build_prompt(user_input: UserInput, history: Sequence[Message] = ()) -> List[LLMMessage]:
        """
        Build the provider messages for one coaching request.

        Args:
            user_input: Consultation input
            history: Prior turns, oldest first

        Returns:
            List[LLMMessage]: System prompt followed by the user prompt
        """
        profile = [
            "사용자 정보:",
            f"- 학습 목표: {user_input.learning_goal}",
            f"- 관심 분야: {', '.join(user_input.interests)}",
            f"- 현재 고민: {user_input.current_concerns}",
        ]
        if user_input.learning_level:
            profile.append(f"- 학습 수준: {user_input.learning_level}")
        if user_input.time_available:
            profile.append(f"- 가용 시간: {user_input.time_available}")
        profile += ["", "이 정보를 바탕으로 개인화된 학습 조언을 해주세요."]
        prompt = "\n".join(profile)

        if history:
            turns = "\n".join(
                f"{'사용자' if msg.role == 'user' else 'AI 코치'}: {msg.content}"
                for msg in history
            )
            prompt += f"\n\n이전 대화 내용:\n{turns}\n\n이전 대화를 참고하여 추가 조언을 해주세요."

        return [LLMMessage.text("system", SYSTEM_PROMPT), LLMMessage.text("user", prompt)]

    async def ask(self, user_input: UserInput, history: Sequence[Message] = ()) -> str:
        """
        Request coaching advice.

        Args:
            user_input: Consultation input
            history: Prior turns, oldest first

        Returns:
            str: Non-empty reply text

        Raises:
            InvalidUserInputError: Required fields are missing
            CoachNotConfiguredError: No provider configured
            CoachUpstreamError: The call failed or returned nothing
        """
        self.validate_input(user_input)

        if self.llm_provider is None:
            raise CoachNotConfiguredError(
                "LLM API 키가 설정되지 않았습니다. LLM_API_KEY 환경 변수를 설정해주세요."
            )

        messages = self.build_prompt(user_input, history)
        try:
            response = await self.llm_provider.chat_completion(messages, temperature=self.temperature)
        except Exception as e:
            raise CoachUpstreamError(describe_llm_error(e), e) from e

        if not response.content.strip():
            logger.warning("LLM returned an empty reply")
            raise CoachUpstreamError(EMPTY_REPLY_ERROR)

        return response.content
