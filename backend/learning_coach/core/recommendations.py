"""
Recommendation Extractor - Pulls recommendation cards out of a free-text coach reply.

This is a line heuristic, not language understanding: any line mentioning
a recommendation keyword becomes a card. Category and priority of
extracted cards are drawn at random; pass a seeded ``random.Random`` for
reproducible output.
"""

import logging
import random
import re
from typing import List, Optional

from ..models import Recommendation

logger = logging.getLogger(__name__)

# Korean triggers ("recommend", "suggest", "make use of") and their English equivalents
TRIGGER_KEYWORDS = ("추천", "제안", "활용")
TRIGGER_KEYWORDS_EN = ("recommend", "suggest", "utilize")

MIN_RECOMMENDATIONS = 3
MAX_RECOMMENDATIONS = 5
TITLE_LENGTH = 50
MIN_TITLE_LENGTH = 10

_LEADING_DECORATION = re.compile(r"^[\s•\-*]+")

DEFAULT_RECOMMENDATIONS = (
    Recommendation(
        id="rec-default-1",
        title="매일 30분 꾸준한 학습",
        description="매일 일정한 시간에 30분씩 학습하는 습관을 만들어보세요.",
        category="strategy",
        priority="high",
    ),
    Recommendation(
        id="rec-default-2",
        title="학습 일지 작성",
        description="배운 내용과 어려웠던 점을 기록하여 성장을 추적해보세요.",
        category="activity",
        priority="medium",
    ),
    Recommendation(
        id="rec-default-3",
        title="온라인 커뮤니티 참여",
        description="같은 분야를 학습하는 사람들과 정보를 공유하고 동기부여를 받아보세요.",
        category="resource",
        priority="medium",
    ),
)


def _is_trigger_line(line: str) -> bool:
    if any(keyword in line for keyword in TRIGGER_KEYWORDS):
        return True
    lowered = line.lower()
    return any(keyword in lowered for keyword in TRIGGER_KEYWORDS_EN)


class RecommendationExtractor:
    """Maps one AI reply to between 3 and 5 recommendations."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Random source for category/priority draws (unseeded if None)
        """
        self.rng = rng or random.Random()

    def _draw_category(self) -> str:
        # resource 40%, activity 30%, strategy 30%
        if self.rng.random() > 0.6:
            return "resource"
        return "activity" if self.rng.random() > 0.5 else "strategy"

    def _draw_priority(self) -> str:
        # high 30%, medium 35%, low 35%
        if self.rng.random() > 0.7:
            return "high"
        return "medium" if self.rng.random() > 0.5 else "low"

    def extract(self, text: str) -> List[Recommendation]:
        """
        Extract recommendations from an AI reply.

        Args:
            text: Raw reply text (any line-break convention, may be empty)

        Returns:
            List[Recommendation]: 3 to 5 recommendations in discovery order,
            padded with the fixed defaults when fewer than 3 lines qualify
        """
        recommendations: List[Recommendation] = []

        for line in text.splitlines():
            if not _is_trigger_line(line):
                continue

            candidate = line[:TITLE_LENGTH].strip()
            if len(candidate) <= MIN_TITLE_LENGTH:
                continue

            title = _LEADING_DECORATION.sub("", candidate) or candidate
            recommendations.append(Recommendation(
                id=f"rec-{len(recommendations) + 1}",
                title=title,
                description=line.strip(),
                category=self._draw_category(),
                priority=self._draw_priority(),
            ))

        if len(recommendations) < MIN_RECOMMENDATIONS:
            logger.debug(
                f"Only {len(recommendations)} recommendation lines found, appending defaults"
            )
            recommendations.extend(rec.model_copy() for rec in DEFAULT_RECOMMENDATIONS)

        return recommendations[:MAX_RECOMMENDATIONS]
