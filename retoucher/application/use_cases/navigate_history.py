from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from retoucher.domain.entities.editor_session import EditorSession

logger = logging.getLogger(__name__)


class HistoryAction(str, Enum):
    UNDO = "undo"
    REDO = "redo"
    RESET = "reset"
    UPLOAD_NEW = "upload-new"


@dataclass
class NavigateHistoryUseCase:
    def execute(self, session: EditorSession, action: HistoryAction) -> bool:
        """
        Move through the history. Returns whether anything changed.

        Undo and redo are no-ops at the ends of the history. Reset jumps to the
        first version but keeps later ones reachable with redo. Upload-new
        drops everything, including the prompt ledger and output size.
        Navigation is allowed while a request is running; its result will be
        discarded because the epoch moves.
        """
        action = HistoryAction(action)
        if action is HistoryAction.UNDO:
            moved = session.undo()
        elif action is HistoryAction.REDO:
            moved = session.redo()
        elif action is HistoryAction.RESET:
            moved = session.reset()
        elif action is HistoryAction.UPLOAD_NEW:
            session.upload_new()
            moved = True
        else:  # pragma: no cover
            raise ValueError(f"Unknown history action: {action}")
        logger.debug(
            "Session %s %s -> moved=%s index=%s",
            session.id,
            action.value,
            moved,
            session.history.current_index,
        )
        return moved
