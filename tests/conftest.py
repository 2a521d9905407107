import io
import os
import sys
from pathlib import Path
from typing import Callable

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'retoucher' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RETOUCHER_MAX_IMAGE_DIMENSION", "2048")


class FakeGenerationService:
    """Stands in for the generation collaborator.

    ``during_call`` runs while the request is outstanding, which lets tests
    navigate the history mid-request. ``error`` is raised instead of
    returning a result.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.result = Image.new("RGB", (300, 200), (200, 40, 40))
        self.segment_result: Image.Image | None = None
        self.error: Exception | None = None
        self.during_call: Callable[[], None] | None = None

    async def _respond(self, name: str, args: tuple, result: Image.Image) -> Image.Image:
        self.calls.append((name, args))
        if self.during_call is not None:
            self.during_call()
        if self.error is not None:
            raise self.error
        return result

    async def edit(self, image, edit_mask, preserve_mask, instruction):
        return await self._respond("edit", (image, edit_mask, preserve_mask, instruction), self.result)

    async def filter(self, image, instruction):
        return await self._respond("filter", (image, instruction), self.result)

    async def adjust(self, image, instruction):
        return await self._respond("adjust", (image, instruction), self.result)

    async def segment(self, image, point):
        result = self.segment_result or Image.new("L", image.size, 255)
        return await self._respond("segment", (image, point), result)


@pytest.fixture()
def fake_generation() -> FakeGenerationService:
    return FakeGenerationService()


@pytest.fixture()
def make_png() -> Callable[..., bytes]:
    def _make(w: int = 120, h: int = 80, color=(128, 64, 32)) -> bytes:
        buf = io.BytesIO()
        Image.new("RGB", (w, h), color).save(buf, format="PNG")
        return buf.getvalue()

    return _make


@pytest.fixture()
def app(fake_generation):
    # lazy import after env configured
    from retoucher.infrastructure.api.dependencies import get_generation_service
    from retoucher.main import create_app

    app = create_app()
    app.dependency_overrides[get_generation_service] = lambda: fake_generation
    return app


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)
