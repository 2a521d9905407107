from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response

from retoucher.application.dtos.common_dto import SuccessResponse
from retoucher.application.dtos.session_dto import (
    OutputSizeRequest,
    ResolveUploadRequest,
    SessionState,
    SettingsRequest,
    SizeModel,
    UploadResponse,
    ViewportRequest,
)
from retoucher.application.use_cases.export_image import ExportImageUseCase
from retoucher.application.use_cases.upload_image import UploadImageUseCase
from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.services.coordinate_mapper import Point
from retoucher.domain.services.processing_service import ProcessingService
from retoucher.infrastructure.api.dependencies import (
    get_processing_service,
    get_session,
    get_session_store,
)
from retoucher.infrastructure.api.errors import editor_errors
from retoucher.infrastructure.storage.image_codec import ExportFormat, encode_image
from retoucher.infrastructure.storage.session_store import SessionStore

router = APIRouter(
    prefix="/sessions",
    tags=["Editor Sessions"],
    responses={
        400: {"description": "Bad Request - Invalid input or no image loaded"},
        404: {"description": "Not Found - Session does not exist"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.post(
    "",
    response_model=SessionState,
    status_code=status.HTTP_201_CREATED,
    summary="Create Editor Session",
    description="""
    Create an empty in-memory editing session.

    Sessions hold the version history, the two mask layers, the output size and
    the prompt ledger. They are discarded when the server restarts.
    """,
)
async def create_session(store: SessionStore = Depends(get_session_store)):
    """Create a new empty session."""
    return SessionState.from_session(store.create())


@router.get(
    "/{session_id}",
    response_model=SessionState,
    summary="Get Session State",
    description="Snapshot of history, masks, output size, crop selection and busy flag.",
)
async def get_session_state(session: EditorSession = Depends(get_session)):
    return SessionState.from_session(session)


@router.delete(
    "/{session_id}",
    response_model=SuccessResponse,
    summary="Delete Session",
)
async def delete_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    if not store.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return SuccessResponse(ok=True)


@router.post(
    "/{session_id}/upload",
    response_model=UploadResponse,
    summary="Upload Image",
    description="""
    Upload the image to edit. This starts a fresh history and clears the
    prompt ledger, the masks and any crop selection.

    **Large images**: when the longer edge exceeds the configured limit
    (2048 px by default) the upload is held and `size_warning` is true. Call
    `POST /sessions/{id}/upload/resolve` with `downscale` true or false to
    continue.
    """,
    responses={400: {"description": "Bad Request - File is not a readable image"}},
)
async def upload_image(
    file: UploadFile = File(..., description="Image file to edit"),
    session: EditorSession = Depends(get_session),
):
    data = await file.read()
    filename = file.filename or "image.png"
    uc = UploadImageUseCase()
    with editor_errors():
        outcome = uc.execute(session, data, filename)
    return UploadResponse(
        size_warning=outcome.size_warning,
        natural_size=SizeModel(width=outcome.width, height=outcome.height),
        session=SessionState.from_session(session),
    )


@router.post(
    "/{session_id}/upload/resolve",
    response_model=UploadResponse,
    summary="Resolve Oversize Upload",
    description="Downscale the held upload so its longer edge equals the limit, or keep it as is.",
)
async def resolve_upload(body: ResolveUploadRequest, session: EditorSession = Depends(get_session)):
    uc = UploadImageUseCase()
    with editor_errors():
        outcome = uc.resolve(session, body.downscale)
    return UploadResponse(
        size_warning=False,
        natural_size=SizeModel(width=outcome.width, height=outcome.height),
        session=SessionState.from_session(session),
    )


@router.put(
    "/{session_id}/viewport",
    response_model=SessionState,
    summary="Sync Viewport",
    description="""
    Report the displayed size and on-screen offset of the image after it loads
    or the window resizes. The mask canvases follow the displayed size; existing
    mask content is rescaled.
    """,
)
async def sync_viewport(body: ViewportRequest, session: EditorSession = Depends(get_session)):
    with editor_errors():
        session.sync_viewport(
            body.display_width,
            body.display_height,
            Point(body.offset_x, body.offset_y),
            body.device_pixel_ratio,
        )
    return SessionState.from_session(session)


@router.put(
    "/{session_id}/settings",
    response_model=SessionState,
    summary="Update Tool Settings",
)
async def update_settings(body: SettingsRequest, session: EditorSession = Depends(get_session)):
    if body.tool is not None:
        session.set_tool(body.tool)
    if body.brush_size is not None:
        session.set_brush_size(body.brush_size)
    if body.tab is not None:
        session.set_tab(body.tab)
    return SessionState.from_session(session)


@router.put(
    "/{session_id}/output-size",
    response_model=SessionState,
    summary="Set Output Size",
    description="Every generated result is resampled to exactly these dimensions before it is committed.",
)
async def set_output_size(body: OutputSizeRequest, session: EditorSession = Depends(get_session)):
    with editor_errors():
        session.set_output_size(body.width, body.height)
    return SessionState.from_session(session)


@router.get(
    "/{session_id}/image",
    summary="Get Current Image",
    description="""
    PNG of the current version, or of the original (first) version for
    before/after comparison. With `overlay=true` the mask previews are drawn
    on top.
    """,
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def get_image(
    session: EditorSession = Depends(get_session),
    processing: ProcessingService = Depends(get_processing_service),
    original: bool = Query(False, description="Return the first version instead of the current one"),
    overlay: bool = Query(False, description="Draw the mask layers over the image"),
):
    version = session.history.original if original else session.current
    if version is None:
        raise HTTPException(status_code=404, detail="No image loaded")
    image = version.to_pil()
    if overlay:
        image = processing.overlay_masks(image, session.masks.edit.rgba, session.masks.preserve.rgba)
    encoded = encode_image(image, ExportFormat.PNG)
    return Response(content=encoded.data, media_type=encoded.content_type)


@router.get(
    "/{session_id}/download",
    summary="Download Current Image",
    description="Export the current version as PNG or JPEG (quality 1-100, JPEG only).",
    response_class=Response,
    responses={200: {"content": {"image/png": {}, "image/jpeg": {}}}},
)
async def download_image(
    session: EditorSession = Depends(get_session),
    format: ExportFormat = Query(ExportFormat.PNG, description="Export format"),
    quality: int = Query(92, ge=1, le=100, description="JPEG quality"),
):
    uc = ExportImageUseCase()
    with editor_errors():
        result = uc.execute(session, format, quality)
    return Response(
        content=result.encoded.data,
        media_type=result.encoded.content_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
