from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, status

from retoucher.domain.errors import (
    EditorValidationError,
    GenerationError,
    PolicyBlockedError,
    SessionBusyError,
    StaleResultError,
)

logger = logging.getLogger(__name__)


@contextmanager
def editor_errors() -> Iterator[None]:
    """Translate editor exceptions into HTTP errors.

    Validation problems are 400, busy or stale sessions 409, a blocked prompt
    422 and any other generation failure 502. Policy blocks carry their own
    ``kind`` so clients can tell them apart from upstream outages.
    """
    try:
        yield
    except EditorValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except (SessionBusyError, StaleResultError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PolicyBlockedError as exc:
        raise HTTPException(
            status_code=422,
            detail={"kind": exc.kind, "message": str(exc), "reason": exc.reason},
        ) from exc
    except GenerationError as exc:
        logger.error("Generation failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"kind": exc.kind, "message": str(exc), "reason": None},
        ) from exc
