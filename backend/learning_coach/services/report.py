"""
Consultation Report - Renders a session as a shareable document.

The Markdown form is what gets mailed or downloaded; the HTML form is the
input handed to the PDF renderer.
"""

from datetime import datetime
from html import escape
from typing import Optional, Sequence

from ..models import Message, Recommendation, UserInput

DEFAULT_REPORT_TITLE = "학습 상담 보고서"

CATEGORY_LABELS = {
    "resource": "학습 자료",
    "activity": "학습 활동",
    "strategy": "학습 전략",
}

PRIORITY_LABELS = {
    "high": "높음",
    "medium": "중간",
    "low": "낮음",
}


def report_title(user_input: UserInput) -> str:
    """Title built from the first two interests, as shown on the export panel."""
    if not user_input.interests:
        return DEFAULT_REPORT_TITLE
    return f"{', '.join(user_input.interests[:2])} {DEFAULT_REPORT_TITLE}"


def _format_date(value: datetime) -> str:
    return value.strftime("%Y년 %m월 %d일 %H:%M")


def render_markdown_report(
    user_input: UserInput,
    messages: Sequence[Message],
    recommendations: Sequence[Recommendation],
    title: str = DEFAULT_REPORT_TITLE,
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render a consultation as Markdown.

    Args:
        user_input: Consultation input
        messages: Chat turns, oldest first
        recommendations: Recommendation cards
        title: Report heading
        generated_at: Timestamp printed in the header (now if None)

    Returns:
        str: Markdown document
    """
    generated_at = generated_at or datetime.now()
    lines = [
        f"# {title}",
        "",
        f"생성일: {_format_date(generated_at)}",
        "",
        "## 학습자 정보",
        "",
        f"- **학습 목표**: {user_input.learning_goal}",
        f"- **관심 분야**: {', '.join(user_input.interests)}",
        f"- **현재 고민**: {user_input.current_concerns}",
    ]
    if user_input.learning_level:
        lines.append(f"- **학습 수준**: {user_input.learning_level}")
    if user_input.time_available:
        lines.append(f"- **가용 시간**: {user_input.time_available}")

    lines += ["", "## 상담 내용", ""]
    for msg in messages:
        speaker = "사용자" if msg.role == "user" else "AI 코치"
        lines += [f"### {speaker} ({_format_date(msg.timestamp)})", "", msg.content, ""]

    lines += ["## 추천사항", ""]
    for index, rec in enumerate(recommendations, 1):
        lines.append(
            f"{index}. **{rec.title}** "
            f"[{CATEGORY_LABELS.get(rec.category, '기타')} / "
            f"우선순위 {PRIORITY_LABELS.get(rec.priority, '보통')}]"
        )
        lines.append(f"   {rec.description}")

    return "\n".join(lines).rstrip() + "\n"


def render_html_report(
    user_input: UserInput,
    messages: Sequence[Message],
    recommendations: Sequence[Recommendation],
    title: str = DEFAULT_REPORT_TITLE,
    generated_at: Optional[datetime] = None,
) -> str:
    """Render a consultation as a standalone HTML page (all user text escaped)."""
    generated_at = generated_at or datetime.now()

    profile = [
        ("학습 목표", user_input.learning_goal),
        ("관심 분야", ", ".join(user_input.interests)),
        ("현재 고민", user_input.current_concerns),
    ]
    if user_input.learning_level:
        profile.append(("학습 수준", user_input.learning_level))
    if user_input.time_available:
        profile.append(("가용 시간", user_input.time_available))

    profile_html = "".join(
        f"<li><strong>{escape(label)}</strong>: {escape(value)}</li>" for label, value in profile
    )
    messages_html = "".join(
        f'<div class="message {msg.role}">'
        f'<div class="speaker">{"사용자" if msg.role == "user" else "AI 코치"} '
        f'<span class="time">{_format_date(msg.timestamp)}</span></div>'
        f'<div class="content">{escape(msg.content).replace(chr(10), "<br>")}</div></div>'
        for msg in messages
    )
    recommendations_html = "".join(
        f'<div class="recommendation priority-{rec.priority}">'
        f"<h3>{escape(rec.title)}</h3>"
        f"<p>{escape(rec.description)}</p>"
        f'<span class="badge">{CATEGORY_LABELS.get(rec.category, "기타")}</span> '
        f'<span class="badge">우선순위 {PRIORITY_LABELS.get(rec.priority, "보통")}</span>'
        f"</div>"
        for rec in recommendations
    )

    return (
        '<!DOCTYPE html>\n<html lang="ko">\n<head>\n<meta charset="UTF-8">\n'
        f"<title>{escape(title)}</title>\n"
        "<style>"
        "body{font-family:sans-serif;line-height:1.6;color:#333;margin:2em}"
        ".message{margin:1em 0;padding:1em;border-radius:8px}"
        ".message.user{background:#eef4ff}.message.ai{background:#f6f6f6}"
        ".speaker{font-weight:bold}.time{color:#888;font-weight:normal;font-size:.85em}"
        ".recommendation{border-left:4px solid #4f46e5;padding:.5em 1em;margin:1em 0}"
        ".priority-high{border-color:#dc2626}.priority-low{border-color:#16a34a}"
        ".badge{background:#eef;border-radius:4px;padding:2px 6px;font-size:.85em}"
        "</style>\n</head>\n<body>\n"
        f"<h1>{escape(title)}</h1>\n"
        f"<p>생성일: {_format_date(generated_at)}</p>\n"
        f"<h2>학습자 정보</h2>\n<ul>{profile_html}</ul>\n"
        f"<h2>상담 내용</h2>\n{messages_html}\n"
        f"<h2>추천사항</h2>\n{recommendations_html}\n"
        "</body>\n</html>\n"
    )
