import base64
import math
from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage, ImageDraw

from shell_extractor.models.circle_engine import CircleEngine
from shell_extractor.models.raster_image import RasterImage


def render_png(draw_fn=None, width=400, height=400, background="white") -> bytes:
    """Draw on a blank page and return PNG bytes."""
    img = PILImage.new("RGB", (width, height), background)
    if draw_fn is not None:
        draw_fn(ImageDraw.Draw(img))
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def shell_circle(draw, cx, cy, r, fill, stroke=14, outline="black"):
    """Circle of radius r whose outline is `stroke` px thick, centred on r."""
    half = stroke // 2
    draw.ellipse([cx - r - half, cy - r - half, cx + r + half, cy + r + half],
                 fill=fill, outline=outline, width=stroke)


def rotated_ellipse(draw, cx, cy, rx, ry, angle_deg=0.0, fill="black"):
    angle = math.radians(angle_deg)
    points = []
    for i in range(64):
        t = 2 * math.pi * i / 64
        x, y = rx * math.cos(t), ry * math.sin(t)
        points.append((cx + x * math.cos(angle) - y * math.sin(angle),
                       cy + x * math.sin(angle) + y * math.cos(angle)))
    draw.polygon(points, fill=fill)


def decode_result(result):
    """ShellResult → (H, W, 4) uint8 RGBA array."""
    payload = result.image_data.split(";base64,", 1)[1]
    with PILImage.open(BytesIO(base64.b64decode(payload))) as img:
        return np.array(img.convert("RGBA"))


def count_visible(pixels) -> int:
    return int((pixels[..., 3] > 0).sum())


def make_raster(rgb, alpha=255) -> RasterImage:
    rgb = np.asarray(rgb, dtype=np.uint8)
    a = np.full(rgb.shape[:2] + (1,), alpha, dtype=np.uint8)
    return RasterImage(pixels=np.concatenate([rgb, a], axis=2))


@pytest.fixture
def fresh_circle_engine():
    CircleEngine.reset()
    yield CircleEngine
    CircleEngine.reset()


# ─── Scenario images ───────────────────────────────────────────────
@pytest.fixture
def red_shell_png():
    return render_png(lambda d: shell_circle(d, 200, 200, 120, fill="red"))


@pytest.fixture
def blue_square_png():
    return render_png(lambda d: d.rectangle([100, 100, 299, 299], fill="blue"))


@pytest.fixture
def white_png():
    return render_png()


@pytest.fixture
def cut_off_page_png():
    def draw(d):
        shell_circle(d, 320, 200, 150, fill="yellow")
        d.ellipse([280, 0, 360, 60], fill="black")  # head
        rotated_ellipse(d, 100, 150, 70, 20, -15)
        rotated_ellipse(d, 100, 300, 50, 15, 20)
    return render_png(draw)


@pytest.fixture
def gapped_shell_png():
    def draw(d):
        shell_circle(d, 200, 200, 120, fill="yellow")
        d.rectangle([310, 185, 330, 215], fill="white")
    return render_png(draw)
