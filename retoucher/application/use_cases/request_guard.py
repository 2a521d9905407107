from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.errors import StaleResultError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_exclusive(session: EditorSession, call: Callable[[], Awaitable[T]]) -> T:
    """Await ``call`` as the session's single outstanding request.

    Raises SessionBusyError if another request is running. The busy flag is
    cleared however the call ends. A result that arrives after the history
    moved (undo, redo, reset, commit, new upload) raises StaleResultError
    instead of being returned.
    """
    token = session.begin_request()
    try:
        result = await call()
    finally:
        session.end_request()
    if not session.is_current(token):
        logger.warning(
            "Discarding stale result for session %s (started at epoch %s, now %s)",
            session.id,
            token,
            session.epoch,
        )
        raise StaleResultError(
            "The image changed while the request was running; the result was discarded"
        )
    return result
