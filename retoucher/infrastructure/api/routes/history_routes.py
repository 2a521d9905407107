from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from retoucher.application.dtos.history_dto import (
    ListPromptsResponse,
    NavigateResponse,
    PromptItem,
    RecallPromptResponse,
)
from retoucher.application.dtos.session_dto import SessionState
from retoucher.application.use_cases.navigate_history import HistoryAction, NavigateHistoryUseCase
from retoucher.domain.entities.editor_session import EditorSession
from retoucher.infrastructure.api.dependencies import get_session

router = APIRouter(
    prefix="/sessions/{session_id}",
    tags=["Edit History"],
    responses={
        404: {"description": "Not Found - Session or prompt entry does not exist"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.post(
    "/history/{action}",
    response_model=NavigateResponse,
    summary="Navigate History",
    description="""
    Move through the linear version history.

    - **undo** / **redo**: step back or forward; no-op at either end
    - **reset**: jump to the first version; later versions stay reachable with redo
    - **upload-new**: drop the whole history, the prompt ledger and the output size

    Every move clears both masks and the crop selection. Navigating while a
    generation is running makes its result stale, so it will not be committed.
    """,
)
async def navigate(action: HistoryAction, session: EditorSession = Depends(get_session)):
    uc = NavigateHistoryUseCase()
    moved = uc.execute(session, action)
    return NavigateResponse(moved=moved, session=SessionState.from_session(session))


@router.get(
    "/prompts",
    response_model=ListPromptsResponse,
    summary="List Prompt History",
    description="Instructions used for committed retouch, adjust and filter operations, oldest first.",
)
async def list_prompts(session: EditorSession = Depends(get_session)):
    return ListPromptsResponse(
        prompts=[PromptItem.from_entity(i, entry) for i, entry in enumerate(session.prompts)]
    )


@router.post(
    "/prompts/{index}/recall",
    response_model=RecallPromptResponse,
    summary="Reuse Prompt",
    description="Return a past instruction and switch to the tab it was used in.",
)
async def recall_prompt(index: int, session: EditorSession = Depends(get_session)):
    try:
        entry = session.recall_prompt(index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return RecallPromptResponse(
        prompt=PromptItem.from_entity(index, entry), session=SessionState.from_session(session)
    )
