from __future__ import annotations

from dataclasses import dataclass

from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.errors import EditorValidationError
from retoucher.domain.services.coordinate_mapper import Point
from retoucher.domain.services.mask_engine import MaskTool


@dataclass
class MaskState:
    has_edit_mask: bool
    has_preserve_mask: bool
    tool: MaskTool
    brush_size: int


@dataclass
class PaintMaskUseCase:
    def execute(
        self,
        session: EditorSession,
        points: list[Point],
        *,
        client_space: bool = True,
        tool: MaskTool | None = None,
        brush_size: float | None = None,
    ) -> MaskState:
        """Paint one pointer-down ... pointer-up stroke."""
        session.require_image()
        if tool is not None:
            session.set_tool(tool)
        if brush_size is not None:
            session.set_brush_size(brush_size)
        if not session.masks.tool.is_stroke_tool:
            raise EditorValidationError(
                f"Tool '{session.masks.tool.value}' does not paint strokes"
            )
        if client_space:
            points = [session.mapper.pointer_to_canvas(p) for p in points]
        session.masks.paint_stroke(points)
        return self.state(session)

    @staticmethod
    def state(session: EditorSession) -> MaskState:
        masks = session.masks
        return MaskState(
            has_edit_mask=masks.has_edit_mask,
            has_preserve_mask=masks.has_preserve_mask,
            tool=masks.tool,
            brush_size=masks.brush_size,
        )
