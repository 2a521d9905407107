from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from retoucher.application.dtos.common_dto import GenerationErrorResponse
from retoucher.application.dtos.editing_dto import (
    MagicPreserveRequest,
    MagicPreserveResponse,
    PointModel,
    StrokeRequest,
)
from retoucher.application.dtos.session_dto import SessionState
from retoucher.application.use_cases.magic_preserve import MagicPreserveUseCase
from retoucher.application.use_cases.paint_mask import PaintMaskUseCase
from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.services.coordinate_mapper import Point
from retoucher.domain.services.mask_engine import MaskRole
from retoucher.infrastructure.api.dependencies import get_generation_service, get_session
from retoucher.infrastructure.api.errors import editor_errors
from retoucher.infrastructure.generation.gemini_client import GenerationService
from retoucher.infrastructure.storage.image_codec import encode_image

router = APIRouter(
    prefix="/sessions/{session_id}/masks",
    tags=["Masks"],
    responses={
        400: {"description": "Bad Request - No image loaded or wrong tool"},
        404: {"description": "Not Found - Session does not exist"},
    },
)


@router.post(
    "/strokes",
    response_model=SessionState,
    summary="Paint Stroke",
    description="""
    Paint one stroke with the active tool.

    - **brush** adds coverage to the edit layer only
    - **eraser** removes coverage from both layers
    - **magic-preserve** is a click tool; use `/magic-preserve` instead

    Points are client coordinates by default and are shifted by the canvas
    offset reported in the last viewport sync.
    """,
)
async def paint_stroke(body: StrokeRequest, session: EditorSession = Depends(get_session)):
    uc = PaintMaskUseCase()
    with editor_errors():
        uc.execute(
            session,
            [Point(p.x, p.y) for p in body.points],
            client_space=body.client_space,
            tool=body.tool,
            brush_size=body.brush_size,
        )
    return SessionState.from_session(session)


@router.delete(
    "",
    response_model=SessionState,
    summary="Clear Masks",
    description="Clear both the edit and the preserve layer.",
)
async def clear_masks(session: EditorSession = Depends(get_session)):
    session.masks.clear()
    return SessionState.from_session(session)


@router.get(
    "/{role}",
    summary="Get Mask Layer",
    description="RGBA PNG of one mask layer at display resolution. Alpha is the selection.",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def get_mask_layer(role: MaskRole, session: EditorSession = Depends(get_session)):
    encoded = encode_image(session.masks.layer(role).to_image())
    return Response(content=encoded.data, media_type=encoded.content_type)


@router.post(
    "/magic-preserve",
    response_model=MagicPreserveResponse,
    summary="Magic Preserve Selection",
    description="""
    Ask the segmentation model for the object under a click and use it as
    the preserve mask, replacing whatever the preserve layer held before.
    Requires the `magic-preserve` tool.
    """,
    responses={
        409: {"description": "Conflict - Another request is running or the image changed meanwhile"},
        422: {"model": GenerationErrorResponse, "description": "Blocked by the model's safety policy"},
        502: {"model": GenerationErrorResponse, "description": "Segmentation service failed or returned no image"},
    },
)
async def magic_preserve(
    body: MagicPreserveRequest,
    session: EditorSession = Depends(get_session),
    generation: GenerationService = Depends(get_generation_service),
):
    uc = MagicPreserveUseCase(generation=generation)
    with editor_errors():
        result = await uc.execute(session, Point(body.x, body.y), client_space=body.client_space)
    x, y = result.native_point
    return MagicPreserveResponse(
        native_point=PointModel(x=x, y=y), session=SessionState.from_session(session)
    )
