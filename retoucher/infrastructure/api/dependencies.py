from __future__ import annotations

from functools import lru_cache
from typing import AsyncIterator

import httpx
from fastapi import Depends, HTTPException, status

from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.errors import SessionNotFoundError
from retoucher.domain.services.processing_service import ProcessingService
from retoucher.infrastructure.config import Settings
from retoucher.infrastructure.generation.gemini_client import GeminiGenerationClient, GenerationService
from retoucher.infrastructure.storage.session_store import SessionStore


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache
def get_session_store() -> SessionStore:
    settings = get_settings()
    return SessionStore(
        max_image_dimension=settings.max_image_dimension,
        ttl_seconds=settings.session_ttl,
        max_sessions=settings.max_sessions,
    )


def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> EditorSession:
    try:
        return store.get(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def get_generation_service(settings: Settings = Depends(get_settings)) -> GenerationService:
    return GeminiGenerationClient(settings)


def get_processing_service() -> ProcessingService:
    return ProcessingService()


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client
