import numpy as np
import pytest

from autotrim.trimtypes import (
    BoundingBox,
    FailReason,
    JobStatus,
    Pixel,
    PixelBuffer,
    ProcessReport,
    ReportItem,
    TrimParams,
)


def test_pixel_ordering_is_lexicographic():
    assert Pixel(1, 0, 0, 0) > Pixel(0, 255, 255, 255)
    assert Pixel(1, 2, 3, 4) < Pixel(1, 2, 3, 5)
    assert sorted([Pixel(2, 0, 0), Pixel(1, 9, 9)])[0] == Pixel(1, 9, 9)


@pytest.mark.parametrize("text,expected", [
    ("white", Pixel(255, 255, 255, 255)),
    ("Black", Pixel(0, 0, 0, 255)),
    ("#ff8000", Pixel(255, 128, 0, 255)),
    ("#FF800080", Pixel(255, 128, 0, 128)),
    ("#f80", Pixel(255, 136, 0, 255)),
    ("rgb(1, 2, 3)", Pixel(1, 2, 3, 255)),
    ("rgba(1,2,3,0)", Pixel(1, 2, 3, 0)),
])
def test_pixel_parse(text, expected):
    assert Pixel.parse(text) == expected


@pytest.mark.parametrize("text", ["", "purple", "#12345", "#gggggg", "rgb(1,2)", "rgb(1,2,300)"])
def test_pixel_parse_rejects(text):
    with pytest.raises(ValueError):
        Pixel.parse(text)


def test_pixel_hex():
    assert Pixel(255, 0, 16, 1).hex() == "#ff001001"


def test_bounding_box_empty():
    box = BoundingBox.empty()
    assert box.is_empty
    assert box.width == 0 and box.height == 0
    assert not box.fits(10, 10)


def test_bounding_box_dimensions():
    box = BoundingBox(top=1, left=2, bottom=1, right=5)
    assert (box.width, box.height) == (4, 1)
    assert box.fits(6, 2)
    assert not box.fits(5, 2)
    assert box.to_dict()["width"] == 4


def test_pixel_buffer_validation():
    with pytest.raises(ValueError):
        PixelBuffer(np.zeros((2, 2, 2), dtype=np.uint8))
    with pytest.raises(ValueError):
        PixelBuffer(np.zeros((2, 2, 3), dtype=np.float32))
    with pytest.raises(ValueError):
        PixelBuffer(np.zeros((2, 2), dtype=np.uint8))


def test_pixel_buffer_properties():
    b = PixelBuffer(np.full((2, 5, 4), (1, 2, 3, 4), dtype=np.uint8))
    assert b.size == (5, 2)
    assert b.channels == 4
    assert b.pixels.size == 5 * 2 * 4
    assert b.pixel_at(4, 1) == Pixel(1, 2, 3, 4)

    rgb = PixelBuffer(np.full((1, 1, 3), (1, 2, 3), dtype=np.uint8))
    assert rgb.pixel_at(0, 0) == Pixel(1, 2, 3, 255)
    assert PixelBuffer(np.zeros((0, 3, 3), dtype=np.uint8)).is_empty


@pytest.mark.parametrize("kwargs", [
    {"target_width": 0},
    {"target_height": -1},
    {"alpha_threshold": 300},
    {"resample": "sinc"},
])
def test_trim_params_validation(kwargs):
    with pytest.raises(ValueError):
        TrimParams(**kwargs)


def test_trim_params_defaults():
    params = TrimParams()
    assert params.target_size == (360, 180)
    assert params.alpha_threshold == 10
    assert params.suffix == "_trimmed"
    assert params.background is None


def test_process_report_counts_and_summary():
    report = ProcessReport()
    report.add(ReportItem(status=JobStatus.SUCCESS))
    report.add(ReportItem(status=JobStatus.FAILED, reason=FailReason.NO_CONTENT))
    report.add(ReportItem(status=JobStatus.FAILED, reason=FailReason.NO_CONTENT))
    report.add(ReportItem(status=JobStatus.FAILED, reason=FailReason.DECODE_FAIL))

    assert report.total_count == 4
    assert report.success_count == 1
    assert report.failed_count == 3
    assert report.skipped_count == 0

    by_reason = report.get_failures_by_reason()
    assert len(by_reason[FailReason.NO_CONTENT]) == 2

    text = report.summary()
    assert "Success: 1" in text
    assert "no_content: 2" in text

    data = report.to_dict()
    assert data["failed"] == 3
    assert data["items"][1]["reason"] == "no_content"
