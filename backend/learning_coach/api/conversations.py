"""
Conversation history API endpoints - List, search, delete and export saved conversations.
"""

from typing import List, Literal, Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status
from fastapi.responses import HTMLResponse, PlainTextResponse

from ..models import ConversationRecord, SortOrder, StorageStatus
from ..core import ConversationStore
from ..services import render_html_report, render_markdown_report, report_title
from ..storage import StorageResult
from .deps import get_conversation_store

router = APIRouter(prefix="/conversations", tags=["conversations"])


def _status(result: StorageResult) -> StorageStatus:
    return StorageStatus(ok=result.ok, failure=result.failure.value if result.failure else None)


def _require_conversation(store: ConversationStore, conversation_id: str) -> ConversationRecord:
    record = store.get(conversation_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Conversation {conversation_id} not found"
        )
    return record


@router.get("", response_model=List[ConversationRecord])
async def list_conversations(
    q: Optional[str] = Query(None, description="Case-insensitive search text"),
    sort: SortOrder = Query(SortOrder.NEWEST, description="newest, oldest or title"),
    store: ConversationStore = Depends(get_conversation_store),
):
    """
    List saved conversations.

    Args:
        q: Optional search text matched against titles, previews, goals, interests and messages
        sort: Ordering of the result

    Returns:
        List of conversations
    """
    return store.list(order=sort, query=q)


@router.delete("", response_model=StorageStatus)
async def clear_conversations(store: ConversationStore = Depends(get_conversation_store)):
    """Delete the whole history."""
    return _status(await store.clear())


@router.get("/{conversation_id}", response_model=ConversationRecord)
async def get_conversation(
    conversation_id: str,
    store: ConversationStore = Depends(get_conversation_store),
):
    """Get one saved conversation."""
    return _require_conversation(store, conversation_id)


@router.delete("/{conversation_id}", response_model=StorageStatus)
async def delete_conversation(
    conversation_id: str,
    store: ConversationStore = Depends(get_conversation_store),
):
    """Delete one saved conversation. Deleting an unknown id succeeds."""
    return _status(await store.delete(conversation_id))


@router.get("/{conversation_id}/export")
async def export_conversation(
    conversation_id: str,
    format: Literal["markdown", "html"] = Query("markdown"),
    store: ConversationStore = Depends(get_conversation_store),
):
    """
    Export a saved conversation as a consultation report.

    Args:
        conversation_id: Saved conversation id
        format: "markdown" for mail/download, "html" for the PDF renderer

    Returns:
        The rendered document
    """
    record = _require_conversation(store, conversation_id)
    title = report_title(record.user_input)

    if format == "html":
        return HTMLResponse(render_html_report(
            record.user_input, record.messages, record.recommendations, title=title
        ))

    filename = f"learning-consultation-{record.id}.md"
    return PlainTextResponse(
        render_markdown_report(
            record.user_input, record.messages, record.recommendations, title=title
        ),
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
