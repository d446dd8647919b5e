import math
from functools import reduce

from shapely.geometry import LineString, Polygon, box as rectangle
from shapely.validation import make_valid

from mesh_types import Point3
from slicer_errors import ConfigError

INFILL_SPACING = 2.0
MAX_INFILL_LINES = 100_000


def raster_lines(box, z, density, spacing=INFILL_SPACING):
    """Lines parallel to Y across the whole box, ``spacing / (density/100)`` apart.

    Densities that are zero, negative or not finite give no lines at all.
    """
    if not (density > 0 and math.isfinite(density)):
        return []
    step = spacing / (density / 100.0)
    if box.min_x + step == box.min_x or (box.max_x - box.min_x) / step > MAX_INFILL_LINES:
        raise ConfigError(f"infill density {density!r} gives more than {MAX_INFILL_LINES} lines per layer")

    lines = []
    x = box.min_x
    while x <= box.max_x:
        lines.append((Point3(x, box.min_y, z), Point3(x, box.max_y, z)))
        x += step
    return lines


def _finite_xy(contour):
    return [(p.x, p.y) for p in contour.points if math.isfinite(p.x) and math.isfinite(p.y)]


def _contour_region(contours):
    polygons = []
    for contour in contours:
        points = _finite_xy(contour)
        if contour.closed and len(points) >= 3:
            polygons.append(make_valid(Polygon(points)))
    if not polygons:
        return None
    # even-odd: a loop inside another loop is a hole
    return reduce(lambda a, b: a.symmetric_difference(b), polygons)


def _line_pieces(geometry):
    if geometry.is_empty:
        return []
    if isinstance(geometry, LineString):
        return [geometry] if geometry.length > 0 else []
    pieces = []
    for part in getattr(geometry, "geoms", ()):
        pieces.extend(_line_pieces(part))
    return pieces


def clip_lines_to_contours(lines, contours, z):
    """Trim raster lines to the area enclosed by the layer's contours.

    Closed contours are clipped as polygons. When a layer has none, lines are
    clipped to the extent of the contour points instead.
    """
    region = _contour_region(contours)
    if region is None:
        points = [point for contour in contours for point in _finite_xy(contour)]
        if not points:
            return []
        xs, ys = zip(*points)
        region = rectangle(min(xs), min(ys), max(xs), max(ys))

    clipped = []
    for start, end in lines:
        pieces = _line_pieces(LineString([(start.x, start.y), (end.x, end.y)]).intersection(region))
        for piece in sorted(pieces, key=lambda p: p.bounds[1]):
            coords = list(piece.coords)
            ordered = sorted((coords[0], coords[-1]), key=lambda c: c[1])
            clipped.append((Point3(ordered[0][0], ordered[0][1], z), Point3(ordered[1][0], ordered[1][1], z)))
    return clipped


def generate_infill(contours, z, box, density, strategy="raster", spacing=INFILL_SPACING):
    """Fill lines for one layer.

    ``raster`` covers the mesh-wide bounding box and ignores the contour shape;
    ``clip`` trims the same lines to the contours.
    """
    lines = raster_lines(box, z, density, spacing)
    if strategy == "raster":
        return lines
    if strategy == "clip":
        return clip_lines_to_contours(lines, contours, z)
    raise ConfigError(f"unknown infill strategy {strategy!r}")
