import pytest

from infill import MAX_INFILL_LINES, generate_infill, raster_lines
from mesh_types import BoundingBox, Contour, Point3
from slicer_errors import ConfigError

BOX = BoundingBox(-5.0, -5.0, -5.0, 5.0, 5.0, 5.0)


def square(half, z=0.0, closed=True):
    corners = [(-half, -half), (half, -half), (half, half), (-half, half)]
    return Contour(tuple(Point3(x, y, z) for x, y in corners), closed=closed)


def xs(lines):
    return [start.x for start, _ in lines]


def test_raster_spacing_follows_density():
    assert xs(raster_lines(BOX, 0.0, 20.0)) == [-5.0, 5.0]
    assert xs(raster_lines(BOX, 0.0, 100.0)) == [-5.0, -3.0, -1.0, 1.0, 3.0, 5.0]


def test_raster_lines_span_box_in_y_at_layer_height():
    for start, end in raster_lines(BOX, 1.5, 50.0):
        assert (start.y, end.y) == (-5.0, 5.0)
        assert start.z == end.z == 1.5
        assert start.x == end.x


@pytest.mark.parametrize("density", [0.0, -20.0, float("nan"), float("inf")])
def test_degenerate_density_gives_no_lines(density):
    assert raster_lines(BOX, 0.0, density) == []


def test_raster_ignores_contour_shape():
    lines = generate_infill((square(1.0),), 0.0, BOX, 100.0, strategy="raster")
    assert len(lines) == 6


def test_clip_to_closed_contour():
    lines = generate_infill((square(2.0),), 0.5, BOX, 100.0, strategy="clip")
    assert xs(lines) == [-1.0, 1.0]
    for start, end in lines:
        assert start.y == pytest.approx(-2.0)
        assert end.y == pytest.approx(2.0)
        assert start.z == end.z == 0.5


def test_clip_respects_holes():
    lines = generate_infill((square(4.0), square(2.0)), 0.0, BOX, 100.0, strategy="clip")
    # x = -3 and 3 cross the ring once, x = -1 and 1 twice (above and below the hole)
    assert xs(lines) == [-3.0, -1.0, -1.0, 1.0, 1.0, 3.0]
    below, above = lines[1], lines[2]
    assert below[0].y == pytest.approx(-4.0) and below[1].y == pytest.approx(-2.0)
    assert above[0].y == pytest.approx(2.0) and above[1].y == pytest.approx(4.0)


def test_clip_open_contour_uses_point_extent():
    contour = Contour((Point3(-2.0, -1.0, 0.0), Point3(2.0, 1.0, 0.0), Point3(float("nan"), 0.0, 0.0)))
    lines = generate_infill((contour,), 0.0, BOX, 100.0, strategy="clip")
    assert xs(lines) == [-1.0, 1.0]
    assert all((start.y, end.y) == (-1.0, 1.0) for start, end in lines)


def test_clip_without_finite_points():
    contour = Contour((Point3(float("inf"), float("nan"), 0.0),))
    assert generate_infill((contour,), 0.0, BOX, 100.0, strategy="clip") == []


def test_clip_to_point_extent_drops_lines_outside():
    contour = Contour((Point3(-0.5, -3.0, 0.0), Point3(0.5, 3.0, 0.0)))
    lines = generate_infill((contour,), 0.0, BOX, 100.0, strategy="clip")
    assert lines == []

    contour = Contour((Point3(-1.0, -3.0, 0.0), Point3(1.0, 3.0, 0.0)))
    lines = generate_infill((contour,), 0.0, BOX, 100.0, strategy="clip")
    assert xs(lines) == [-1.0, 1.0]
    assert all((start.y, end.y) == (-3.0, 3.0) for start, end in lines)


def test_unknown_strategy():
    with pytest.raises(ConfigError):
        generate_infill((square(1.0),), 0.0, BOX, 20.0, strategy="gyroid")


@pytest.mark.parametrize("density", [1e18, 1e9])
def test_huge_density_rejected(density):
    with pytest.raises(ConfigError):
        raster_lines(BOX, 0.0, density)


def test_density_above_hundred_is_not_clamped():
    lines = raster_lines(BOX, 0.0, 1000.0)
    assert len(lines) == pytest.approx(51, abs=1)
    assert len(lines) < MAX_INFILL_LINES
