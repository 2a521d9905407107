from __future__ import annotations

from fastapi import APIRouter, Depends

from retoucher.application.dtos.common_dto import ErrorResponse, GenerationErrorResponse
from retoucher.application.dtos.editing_dto import CropSelectRequest, EditResponse, InstructionRequest
from retoucher.application.dtos.session_dto import SessionState, VersionMetadata
from retoucher.application.use_cases.apply_crop import ApplyCropUseCase
from retoucher.application.use_cases.apply_global_edit import ApplyGlobalEditUseCase
from retoucher.application.use_cases.retouch_image import RetouchImageUseCase
from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.entities.prompt_entry import PromptKind
from retoucher.domain.services.crop_transformer import CropSelection
from retoucher.domain.services.processing_service import ProcessingService
from retoucher.infrastructure.api.dependencies import (
    get_generation_service,
    get_processing_service,
    get_session,
)
from retoucher.infrastructure.api.errors import editor_errors
from retoucher.infrastructure.generation.gemini_client import GenerationService

router = APIRouter(
    prefix="/sessions/{session_id}",
    tags=["Editing"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Local validation failed; nothing was changed"},
        404: {"description": "Not Found - Session does not exist"},
        409: {"model": ErrorResponse, "description": "Conflict - Another request is running or the image changed meanwhile"},
        422: {"model": GenerationErrorResponse, "description": "Blocked by the model's safety policy"},
        502: {"model": GenerationErrorResponse, "description": "Generation service failed or returned no image"},
    },
)


@router.post(
    "/retouch",
    response_model=EditResponse,
    summary="Retouch Masked Region",
    description="""
    Regenerate the area painted on the edit mask according to the prompt.

    **Preconditions** (checked before any call is made):
    - an image is loaded
    - the prompt is not blank
    - the edit mask has content at native resolution
    - an output size is set

    If a preserve mask exists it is sent too; the model is told that preserved
    pixels win where the masks overlap. The result is resampled to the output
    size, committed to the history, the masks are cleared and the prompt is
    recorded.
    """,
)
async def retouch(
    body: InstructionRequest,
    session: EditorSession = Depends(get_session),
    generation: GenerationService = Depends(get_generation_service),
    processing: ProcessingService = Depends(get_processing_service),
):
    uc = RetouchImageUseCase(generation=generation, processing=processing)
    with editor_errors():
        version = await uc.execute(session, body.prompt)
    return EditResponse(
        version=VersionMetadata.from_entity(version), session=SessionState.from_session(session)
    )


@router.post(
    "/filter",
    response_model=EditResponse,
    summary="Apply Filter",
    description="Apply a stylistic filter described by the prompt to the whole image.",
)
async def apply_filter(
    body: InstructionRequest,
    session: EditorSession = Depends(get_session),
    generation: GenerationService = Depends(get_generation_service),
    processing: ProcessingService = Depends(get_processing_service),
):
    uc = ApplyGlobalEditUseCase(generation=generation, processing=processing)
    with editor_errors():
        version = await uc.execute(session, PromptKind.FILTER, body.prompt)
    return EditResponse(
        version=VersionMetadata.from_entity(version), session=SessionState.from_session(session)
    )


@router.post(
    "/adjust",
    response_model=EditResponse,
    summary="Apply Adjustment",
    description="Apply a global photographic adjustment described by the prompt.",
)
async def apply_adjustment(
    body: InstructionRequest,
    session: EditorSession = Depends(get_session),
    generation: GenerationService = Depends(get_generation_service),
    processing: ProcessingService = Depends(get_processing_service),
):
    uc = ApplyGlobalEditUseCase(generation=generation, processing=processing)
    with editor_errors():
        version = await uc.execute(session, PromptKind.ADJUST, body.prompt)
    return EditResponse(
        version=VersionMetadata.from_entity(version), session=SessionState.from_session(session)
    )


@router.put(
    "/crop/selection",
    response_model=SessionState,
    summary="Select Crop Area",
    description="""
    Store the crop rectangle in displayed-image coordinates. An optional
    aspect preset (`free`, `1:1`, `16:9`) constrains the rectangle.
    """,
)
async def select_crop(body: CropSelectRequest, session: EditorSession = Depends(get_session)):
    with editor_errors():
        session.require_image()
        session.select_crop(
            CropSelection(body.x, body.y, body.width, body.height), aspect=body.aspect
        )
    return SessionState.from_session(session)


@router.post(
    "/crop/apply",
    response_model=EditResponse,
    summary="Apply Crop",
    description="""
    Cut the selected area from the native image at device-pixel resolution
    and commit it. Zero-area selections are rejected and nothing is committed.
    """,
)
async def apply_crop(session: EditorSession = Depends(get_session)):
    uc = ApplyCropUseCase()
    with editor_errors():
        version = uc.execute(session)
    return EditResponse(
        version=VersionMetadata.from_entity(version), session=SessionState.from_session(session)
    )
