from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from retoucher.domain.entities.editor_session import EditorSession, Tab
from retoucher.domain.entities.image_version import ImageVersion, VersionOrigin
from retoucher.domain.services.crop_transformer import AspectPreset
from retoucher.domain.services.mask_engine import MaskTool


class SizeModel(BaseModel):
    width: int = Field(..., description="Width in pixels", examples=[1920], gt=0)
    height: int = Field(..., description="Height in pixels", examples=[1080], gt=0)


class VersionMetadata(BaseModel):
    """Metadata of one immutable image version in the history."""
    id: str = Field(..., description="Unique identifier of the version")
    origin: VersionOrigin = Field(..., description="What produced this version")
    filename: str = Field(..., description="Suggested filename of the version")
    width: int = Field(..., description="Width of the version in pixels", gt=0)
    height: int = Field(..., description="Height of the version in pixels", gt=0)
    created_at: datetime = Field(..., description="When the version was committed")

    @classmethod
    def from_entity(cls, version: ImageVersion) -> VersionMetadata:
        return cls(
            id=version.id,
            origin=version.origin,
            filename=version.filename,
            width=version.width,
            height=version.height,
            created_at=version.created_at,
        )


class HistoryState(BaseModel):
    current_index: int = Field(..., description="Index of the current version, -1 when empty", ge=-1)
    length: int = Field(..., description="Number of versions held", ge=0)
    can_undo: bool
    can_redo: bool
    versions: list[VersionMetadata] = Field(default_factory=list)


class MaskStateModel(BaseModel):
    has_edit_mask: bool = Field(..., description="Whether the edit layer has any non-transparent pixel")
    has_preserve_mask: bool = Field(..., description="Whether the preserve layer has any non-transparent pixel")
    tool: MaskTool = Field(..., description="Active mask tool")
    brush_size: int = Field(..., description="Brush width in display pixels", ge=5, le=100)
    canvas_width: int = Field(..., description="Mask canvas width (displayed image width)")
    canvas_height: int = Field(..., description="Mask canvas height (displayed image height)")


class CropSelectionModel(BaseModel):
    x: float = Field(..., description="Left edge in displayed-image pixels", ge=0)
    y: float = Field(..., description="Top edge in displayed-image pixels", ge=0)
    width: float = Field(..., description="Selection width in displayed-image pixels", ge=0)
    height: float = Field(..., description="Selection height in displayed-image pixels", ge=0)


class SessionState(BaseModel):
    """Full snapshot of an editor session."""
    id: str = Field(..., description="Session identifier")
    created_at: datetime
    tab: Tab = Field(..., description="Active editing tab")
    busy: bool = Field(..., description="True while a generation or segmentation request is running")
    epoch: int = Field(..., description="History generation counter; bumps on every history change")
    size_warning: bool = Field(..., description="An oversize upload is waiting for downscale-or-continue")
    max_image_dimension: int = Field(..., description="Longer-edge limit that triggers the size warning")
    output_size: SizeModel | None = Field(None, description="Dimensions every generated result is resampled to")
    current: VersionMetadata | None = Field(None, description="The version currently shown")
    history: HistoryState
    masks: MaskStateModel
    crop_selection: CropSelectionModel | None = None
    crop_aspect: AspectPreset = AspectPreset.FREE
    prompt_count: int = Field(0, description="Number of entries in the prompt ledger", ge=0)

    @classmethod
    def from_session(cls, session: EditorSession) -> SessionState:
        history = session.history
        masks = session.masks
        current = history.current
        selection = session.crop_selection
        return cls(
            id=session.id,
            created_at=session.created_at,
            tab=session.tab,
            busy=session.busy,
            epoch=session.epoch,
            size_warning=session.pending_upload is not None,
            max_image_dimension=session.max_image_dimension,
            output_size=(
                SizeModel(width=session.output_size.width, height=session.output_size.height)
                if session.output_size
                else None
            ),
            current=VersionMetadata.from_entity(current) if current else None,
            history=HistoryState(
                current_index=history.current_index,
                length=len(history),
                can_undo=history.can_undo,
                can_redo=history.can_redo,
                versions=[VersionMetadata.from_entity(v) for v in history.versions],
            ),
            masks=MaskStateModel(
                has_edit_mask=masks.has_edit_mask,
                has_preserve_mask=masks.has_preserve_mask,
                tool=masks.tool,
                brush_size=masks.brush_size,
                canvas_width=masks.size[0],
                canvas_height=masks.size[1],
            ),
            crop_selection=(
                CropSelectionModel(
                    x=selection.x, y=selection.y, width=selection.width, height=selection.height
                )
                if selection
                else None
            ),
            crop_aspect=session.crop_aspect,
            prompt_count=len(session.prompts),
        )


class UploadResponse(BaseModel):
    size_warning: bool = Field(..., description="True when the image exceeds the size limit and a choice is required")
    natural_size: SizeModel = Field(..., description="Dimensions of the uploaded (or resolved) image")
    session: SessionState


class ResolveUploadRequest(BaseModel):
    downscale: bool = Field(..., description="True to shrink the longer edge to the limit, False to keep the original")


class ViewportRequest(BaseModel):
    """Reported by the viewer on every image load and window resize."""
    display_width: float = Field(..., description="Displayed (CSS) width of the image", gt=0)
    display_height: float = Field(..., description="Displayed (CSS) height of the image", gt=0)
    offset_x: float = Field(0.0, description="Left of the canvas in client coordinates")
    offset_y: float = Field(0.0, description="Top of the canvas in client coordinates")
    device_pixel_ratio: float = Field(1.0, description="Device pixels per CSS pixel", gt=0)


class SettingsRequest(BaseModel):
    tool: MaskTool | None = Field(None, description="Mask tool to activate")
    brush_size: float | None = Field(None, description="Brush width; clamped to 5..100")
    tab: Tab | None = Field(None, description="Editing tab to activate")


class OutputSizeRequest(SizeModel):
    """Target dimensions for generated results."""
