from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from retoucher.application.dtos.session_dto import SessionState
from retoucher.domain.entities.prompt_entry import PromptHistoryEntry, PromptKind


class PromptItem(BaseModel):
    """One instruction from the prompt ledger."""
    index: int = Field(..., description="Position in the ledger", ge=0)
    kind: PromptKind = Field(..., description="Operation the instruction was used for", examples=["retouch"])
    text: str = Field(..., description="Instruction text", examples=["remove the lamp post"])
    created_at: datetime | None = Field(None, description="When the instruction was recorded")

    @classmethod
    def from_entity(cls, index: int, entry: PromptHistoryEntry) -> PromptItem:
        return cls(index=index, kind=entry.kind, text=entry.text, created_at=entry.created_at)


class ListPromptsResponse(BaseModel):
    prompts: list[PromptItem] = Field(..., description="Ledger entries, oldest first")


class RecallPromptResponse(BaseModel):
    prompt: PromptItem
    session: SessionState


class NavigateResponse(BaseModel):
    moved: bool = Field(..., description="False when the action was a no-op (e.g. undo at the first version)")
    session: SessionState
