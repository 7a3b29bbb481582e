import base64

import pytest

from shell_extractor import DecodeError, extract_shell
from shell_extractor.services.border_detection_service import FloodFillBorderDetector

from conftest import (
    count_visible,
    decode_result,
    render_png,
    rotated_ellipse,
    shell_circle,
)


@pytest.fixture
def flood_fill():
    return FloodFillBorderDetector()


# ─── Coloring page detection ──────────────────────────────────────
def test_full_circle_extracts_interior(red_shell_png, flood_fill):
    result = extract_shell(red_shell_png, detector=flood_fill)
    assert result.shell_detected is True
    assert result.hint is None

    px = decode_result(result)
    h, w = px.shape[:2]
    assert px[h // 2, w // 2, 3] > 0, "center should be visible"
    assert px[1, 1, 3] == 0, "corner should be transparent"
    # Cropped to the shell, not the 400x400 frame
    assert w < 400 and h < 400


def test_circle_with_multiple_colors_inside(flood_fill):
    def draw(d):
        shell_circle(d, 200, 200, 120, fill="white")
        d.rectangle([140, 140, 189, 189], fill="red")
        d.rectangle([210, 140, 259, 189], fill="blue")
        d.rectangle([140, 210, 189, 259], fill="green")
        d.rectangle([210, 210, 259, 259], fill="orange")

    result = extract_shell(render_png(draw), detector=flood_fill)
    assert result.shell_detected is True

    px = decode_result(result)
    assert count_visible(px) > 1000
    assert px[1, 1, 3] == 0


def test_dark_fill_color_survives_masking(flood_fill):
    # #1a1a80: red/green under the dark threshold, blue well above it
    result = extract_shell(render_png(lambda d: shell_circle(d, 200, 200, 120, fill="#1a1a80")),
                           detector=flood_fill)
    assert result.shell_detected is True

    px = decode_result(result)
    h, w = px.shape[:2]
    center = px[h // 2, w // 2]
    assert center[3] > 0
    assert center[2] > 80


def test_empty_shell_is_mostly_transparent(flood_fill):
    result = extract_shell(render_png(lambda d: shell_circle(d, 200, 200, 120, fill="white")),
                           detector=flood_fill)
    assert result.shell_detected is True
    assert count_visible(decode_result(result)) < 2000


def test_full_turtle_page_crops_to_shell(flood_fill):
    def draw(d):
        d.ellipse([170, 15, 230, 65], fill="black")  # head
        rotated_ellipse(d, 50, 150, 60, 15, -15)
        rotated_ellipse(d, 350, 150, 60, 15, 15)
        rotated_ellipse(d, 130, 320, 40, 12, 30)
        rotated_ellipse(d, 270, 320, 40, 12, -30)
        shell_circle(d, 200, 200, 120, fill="yellow")
        d.rectangle([160, 160, 239, 239], fill="magenta")

    result = extract_shell(render_png(draw), detector=flood_fill)
    assert result.shell_detected is True
    assert result.hint is None

    px = decode_result(result)
    h, w = px.shape[:2]
    assert px[h // 2, w // 2, 3] > 0
    assert w < 300 and h < 300


# ─── Regular photos ───────────────────────────────────────────────
def test_no_circle_falls_back_to_white_removal(blue_square_png, flood_fill):
    result = extract_shell(blue_square_png, detector=flood_fill)
    assert result.shell_detected is False
    assert result.hint is None

    px = decode_result(result)
    assert px.shape[:2] == (400, 400)
    assert px[200, 200, 3] > 0, "blue square visible"
    assert px[10, 10, 3] == 0, "white background removed"


def test_all_white_image_becomes_fully_transparent(white_png, flood_fill):
    result = extract_shell(white_png, detector=flood_fill)
    assert result.shell_detected is False
    assert result.hint is None
    assert count_visible(decode_result(result)) == 0


def test_colorful_drawing_without_outlines(flood_fill):
    def draw(d):
        d.ellipse([100, 100, 300, 300], fill="red")
        d.ellipse([100, 100, 200, 200], fill="yellow")
        d.ellipse([200, 200, 300, 300], fill="green")

    result = extract_shell(render_png(draw), detector=flood_fill)
    assert result.shell_detected is False
    assert result.hint is None
    assert decode_result(result)[200, 200, 3] > 0


# ─── Partial / problem photos ─────────────────────────────────────
def test_cut_off_circle_gives_hint(cut_off_page_png, flood_fill):
    result = extract_shell(cut_off_page_png, detector=flood_fill)
    assert result.shell_detected is False
    assert result.hint is not None
    assert "circle" in result.hint


def test_gap_in_border_leaks_and_warns(gapped_shell_png, flood_fill):
    result = extract_shell(gapped_shell_png, detector=flood_fill)
    assert result.shell_detected is False
    assert result.hint is not None


def test_border_barely_cut_off_at_edge_is_detected(flood_fill):
    def draw(d):
        shell_circle(d, 200, 260, 150, fill="red")
        d.rectangle([160, 200, 239, 259], fill="blue")

    result = extract_shell(render_png(draw), detector=flood_fill)
    assert result.shell_detected is True
    assert result.hint is None

    px = decode_result(result)
    h, w = px.shape[:2]
    assert px[h // 2, w // 2, 3] > 0


def test_thin_dark_lines_do_not_trigger_hint(flood_fill):
    def draw(d):
        d.line([(50, 50), (350, 50)], fill="#333333", width=3)
        d.line([(50, 350), (350, 350)], fill="#333333", width=3)
        d.ellipse([170, 170, 230, 230], fill="blue")

    result = extract_shell(render_png(draw), detector=flood_fill)
    assert result.shell_detected is False
    assert result.hint is None


# ─── Edge cases ───────────────────────────────────────────────────
def test_very_small_image(flood_fill):
    buf = render_png(lambda d: shell_circle(d, 50, 50, 30, fill="red", stroke=6), 100, 100)
    result = extract_shell(buf, detector=flood_fill)
    assert result.image_data.startswith("data:image/png;base64,")


def test_large_image_is_resized_and_detected(flood_fill):
    buf = render_png(lambda d: shell_circle(d, 1000, 1000, 600, fill="red", stroke=30), 2000, 2000)
    result = extract_shell(buf, detector=flood_fill)
    assert result.shell_detected is True
    assert result.hint is None
    assert result.width <= 800 and result.height <= 800


@pytest.mark.parametrize("size,center", [((400, 600), (200, 300)), ((600, 400), (300, 200))])
def test_non_square_images(size, center, flood_fill):
    buf = render_png(lambda d: shell_circle(d, center[0], center[1], 120, fill="blue"), *size)
    result = extract_shell(buf, detector=flood_fill)
    assert result.shell_detected is True


def test_colored_over_center_still_finds_start(flood_fill):
    def draw(d):
        shell_circle(d, 200, 200, 120, fill="yellow")
        d.ellipse([170, 170, 230, 230], fill="black")

    result = extract_shell(render_png(draw), detector=flood_fill)
    assert result.shell_detected is True

    px = decode_result(result)
    h, w = px.shape[:2]
    assert px[h // 4, w // 2, 3] > 0, "yellow above the black blob is visible"


def test_rerun_on_own_output_does_not_crash(red_shell_png, flood_fill):
    first = extract_shell(red_shell_png, detector=flood_fill)
    payload = first.image_data.split(";base64,", 1)[1]

    second = extract_shell(base64.b64decode(payload), detector=flood_fill)
    assert isinstance(second.shell_detected, bool)
    assert second.image_data.startswith("data:image/png;base64,")


def test_rerun_on_own_output_gives_no_hint(red_shell_png, flood_fill):
    first = extract_shell(red_shell_png, detector=flood_fill)
    payload = first.image_data.split(";base64,", 1)[1]

    # The border is transparent now, so there is no ink left to reframe
    second = extract_shell(base64.b64decode(payload), detector=flood_fill)
    assert second.hint is None


def test_grey_ink_cut_off_page_hint_ignores_env(monkeypatch, flood_fill):
    def draw(d):
        shell_circle(d, 320, 200, 150, fill="yellow", outline="#333333")
        d.ellipse([280, 0, 360, 60], fill="#333333")
        rotated_ellipse(d, 100, 150, 70, 20, -15, fill="#333333")
        rotated_ellipse(d, 100, 300, 50, 15, 20, fill="#333333")

    buf = render_png(draw)
    monkeypatch.setenv("SHELL_DARK_THRESHOLD", "40")
    result = extract_shell(buf, detector=flood_fill)
    assert result.shell_detected is False
    assert result.hint is not None


def test_undecodable_input_raises_decode_error(flood_fill):
    with pytest.raises(DecodeError):
        extract_shell(b"definitely not an image", detector=flood_fill)


def test_result_dict_uses_camel_case_keys(red_shell_png, flood_fill):
    data = extract_shell(red_shell_png, detector=flood_fill).to_dict()
    assert set(data) == {"imageData", "shellDetected", "hint"}
    assert data["shellDetected"] is True


def test_boost_contrast_can_be_disabled(flood_fill):
    # Faint pencil-grey square on white paper inside the shell
    def draw(d):
        shell_circle(d, 200, 200, 120, fill="white")
        d.rectangle([180, 180, 219, 219], fill=(215, 215, 215))

    buf = render_png(draw)
    boosted = decode_result(extract_shell(buf, detector=flood_fill))
    plain = decode_result(extract_shell(buf, detector=flood_fill, boost_contrast=False))

    h, w = plain.shape[:2]
    assert plain[h // 2, w // 2, 0] == 215
    assert boosted[h // 2, w // 2, 0] < 215
