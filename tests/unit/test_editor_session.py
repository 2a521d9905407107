import numpy as np
import pytest
from PIL import Image

from retoucher.domain.entities.editor_session import EditorSession, Tab
from retoucher.domain.entities.image_version import ImageVersion, VersionOrigin
from retoucher.domain.entities.output_size import OutputSize
from retoucher.domain.entities.prompt_entry import PromptKind
from retoucher.domain.errors import EditorValidationError, SessionBusyError
from retoucher.domain.services.coordinate_mapper import Point
from retoucher.domain.services.crop_transformer import AspectPreset, CropSelection
from retoucher.domain.services.mask_engine import MaskTool


def rgb(w: int, h: int, color=(10, 20, 30)) -> Image.Image:
    return Image.new("RGB", (w, h), color)


def test_small_upload_loads_immediately():
    session = EditorSession(max_image_dimension=2048)
    needs_choice = session.receive_upload(rgb(300, 200), "cat.png")
    assert not needs_choice
    assert session.has_image
    assert session.current.filename == "cat.png"
    assert session.output_size == OutputSize(300, 200)
    assert session.masks.size == (300, 200)
    assert session.epoch == 1


def test_oversize_upload_waits_for_a_choice():
    session = EditorSession(max_image_dimension=2048)
    assert session.receive_upload(rgb(3000, 2000), "big.jpg")
    assert not session.has_image
    assert len(session.history) == 0
    assert session.pending_upload is not None


def test_oversize_upload_downscaled():
    session = EditorSession(max_image_dimension=2048)
    session.receive_upload(rgb(3000, 2000), "big.jpg")
    version = session.resolve_pending_upload(downscale=True)
    assert (version.width, version.height) == (2048, 1365)
    assert session.output_size == OutputSize(2048, 1365)
    assert session.pending_upload is None
    assert len(session.history) == 1


def test_oversize_upload_continued_at_full_size():
    session = EditorSession(max_image_dimension=2048)
    session.receive_upload(rgb(3000, 2000), "big.jpg")
    version = session.resolve_pending_upload(downscale=False)
    assert (version.width, version.height) == (3000, 2000)
    assert session.output_size == OutputSize(3000, 2000)


def test_resolve_without_pending_upload_fails():
    with pytest.raises(EditorValidationError):
        EditorSession().resolve_pending_upload(downscale=True)


def test_load_image_starts_a_fresh_chain():
    session = EditorSession()
    session.load_image(rgb(100, 100), "a.png")
    session.commit(ImageVersion.from_pil(rgb(100, 100, (1, 1, 1)), VersionOrigin.FILTER))
    session.prompts.append(PromptKind.FILTER, "sepia")
    session.set_output_size(50, 50)

    session.load_image(rgb(80, 60), "b.png")
    assert len(session.history) == 1
    assert session.current.filename == "b.png"
    assert len(session.prompts) == 0
    assert session.output_size == OutputSize(80, 60)
    assert session.tab is Tab.RETOUCH


def test_history_changes_clear_masks_and_crop_and_bump_epoch():
    session = EditorSession()
    session.load_image(rgb(100, 100), "a.png")
    session.commit(ImageVersion.from_pil(rgb(100, 100, (1, 1, 1)), VersionOrigin.FILTER))
    session.masks.paint_stroke([Point(10, 50), Point(90, 50)])
    session.set_tab(Tab.CROP)
    session.select_crop(CropSelection(0, 0, 20, 20))
    epoch = session.epoch

    assert session.undo()
    assert not session.masks.has_edit_mask
    assert session.crop_selection is None
    assert session.epoch == epoch + 1


def test_noop_navigation_keeps_epoch():
    session = EditorSession()
    session.load_image(rgb(10, 10), "a.png")
    epoch = session.epoch
    assert not session.undo()
    assert not session.redo()
    assert not session.reset()
    assert session.epoch == epoch


def test_upload_new_clears_everything():
    session = EditorSession()
    session.load_image(rgb(10, 10), "a.png")
    session.prompts.append(PromptKind.ADJUST, "warmer")
    session.upload_new()
    assert not session.has_image
    assert session.output_size is None
    assert len(session.prompts) == 0


def test_set_output_size_requires_an_image():
    session = EditorSession()
    with pytest.raises(EditorValidationError):
        session.set_output_size(100, 100)
    session.load_image(rgb(10, 10), "a.png")
    assert session.set_output_size(640, 480) == OutputSize(640, 480)
    with pytest.raises(EditorValidationError):
        session.set_output_size(0, 480)


def test_viewport_sync_resizes_mask_canvas():
    session = EditorSession()
    session.load_image(rgb(800, 600), "a.png")
    session.masks.paint_stroke([Point(100, 300), Point(700, 300)])
    canvas = session.sync_viewport(400.6, 300.2, Point(0, 0), 2)
    assert canvas == (400, 300)
    assert session.masks.size == (400, 300)
    assert session.masks.has_edit_mask
    assert session.mapper.scale_x == pytest.approx(800 / 400.6)


def test_select_crop_applies_aspect():
    session = EditorSession()
    session.load_image(rgb(100, 100), "a.png")
    selection = session.select_crop(CropSelection(0, 0, 160, 50), AspectPreset.SQUARE)
    assert selection == CropSelection(0, 0, 50, 50)
    assert session.crop_aspect is AspectPreset.SQUARE


def test_leaving_crop_tab_drops_selection():
    session = EditorSession()
    session.load_image(rgb(100, 100), "a.png")
    session.set_tab(Tab.CROP)
    session.select_crop(CropSelection(0, 0, 20, 20))
    session.set_tab(Tab.FILTERS)
    assert session.crop_selection is None


def test_recall_prompt_switches_tab():
    session = EditorSession()
    session.load_image(rgb(10, 10), "a.png")
    session.prompts.append(PromptKind.FILTER, "anime")
    session.prompts.append(PromptKind.ADJUST, "blur background")
    entry = session.recall_prompt(0)
    assert entry.text == "anime"
    assert session.tab is Tab.FILTERS
    session.recall_prompt(1)
    assert session.tab is Tab.ADJUST
    with pytest.raises(IndexError):
        session.recall_prompt(5)


def test_only_one_request_at_a_time():
    session = EditorSession()
    token = session.begin_request()
    with pytest.raises(SessionBusyError):
        session.begin_request()
    session.end_request()
    assert session.is_current(token)
    assert session.begin_request() == token


def test_tool_and_brush_survive_a_new_load():
    session = EditorSession()
    session.set_tool(MaskTool.ERASER)
    session.set_brush_size(500)
    session.load_image(rgb(10, 10), "a.png")
    assert session.masks.tool is MaskTool.ERASER
    assert session.masks.brush_size == 100


def test_versions_keep_their_pixels():
    session = EditorSession()
    version = session.load_image(rgb(4, 4, (9, 8, 7)), "a.png")
    assert np.array_equal(np.asarray(version.to_pil()), np.asarray(rgb(4, 4, (9, 8, 7))))
