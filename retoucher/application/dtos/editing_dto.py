from __future__ import annotations

from pydantic import BaseModel, Field

from retoucher.application.dtos.session_dto import CropSelectionModel, SessionState, VersionMetadata
from retoucher.domain.services.crop_transformer import AspectPreset
from retoucher.domain.services.mask_engine import MaskTool


class PointModel(BaseModel):
    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")


class StrokeRequest(BaseModel):
    """One pointer-down to pointer-up stroke."""
    points: list[PointModel] = Field(..., description="Pointer positions in order", min_length=1)
    client_space: bool = Field(
        True, description="Points are raw client coordinates (True) or already canvas-local (False)"
    )
    tool: MaskTool | None = Field(None, description="Tool to switch to before painting")
    brush_size: float | None = Field(None, description="Brush width to use; clamped to 5..100")


class MagicPreserveRequest(PointModel):
    client_space: bool = Field(True, description="Point is a raw client coordinate")


class MagicPreserveResponse(BaseModel):
    native_point: PointModel = Field(..., description="Click position in native image pixels")
    session: SessionState


class InstructionRequest(BaseModel):
    prompt: str = Field(..., description="Instruction for the generation model", examples=["replace the sky with a sunset"])


class CropSelectRequest(CropSelectionModel):
    aspect: AspectPreset | None = Field(None, description="Aspect preset to constrain the selection to")


class EditResponse(BaseModel):
    """Returned after a new version has been committed."""
    version: VersionMetadata
    session: SessionState
