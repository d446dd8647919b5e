import logging
import warnings

import numpy as np
from pykdtree.kdtree import KDTree

from infill import generate_infill
from mesh_types import EMPTY_BOX, BoundingBox, Contour, Layer, Point3
from slicer_config import INTERSECTION_MODES
from slicer_errors import ConfigError, GeometryWarning

log = logging.getLogger(__name__)

STITCH_TOLERANCE = 1e-6
STITCH_NEIGHBOURS = 8
MAX_LAYERS = 1_000_000
EDGES = ((0, 1), (1, 2), (2, 0))


def bounding_box(mesh):
    """Axis-aligned extents of every vertex; all zeros for an empty mesh."""
    vertices = mesh.vertex_array().reshape(-1, 3)
    if len(vertices) == 0:
        return EMPTY_BOX
    mins = vertices.min(axis=0)
    maxs = vertices.max(axis=0)
    return BoundingBox(*(float(v) for v in mins), *(float(v) for v in maxs))


def surface_area(mesh):
    vertices = mesh.vertex_array()
    if len(vertices) == 0:
        return 0.0
    cross = np.cross(vertices[:, 1] - vertices[:, 0], vertices[:, 2] - vertices[:, 0])
    return float(np.linalg.norm(cross, axis=1).sum() / 2)


def mesh_report(mesh):
    """Diagnostics for a mesh. Open meshes are reported, never rejected."""
    edges = set()
    for triangle in mesh:
        for vertex_pair in [(triangle.v1, triangle.v2), (triangle.v2, triangle.v3), (triangle.v1, triangle.v3)]:
            edge = tuple(sorted(vertex_pair))
            if edge in edges:
                edges.remove(edge)
            else:
                edges.add(edge)

    vertices = mesh.vertex_array()
    if len(vertices):
        cross = np.cross(vertices[:, 1] - vertices[:, 0], vertices[:, 2] - vertices[:, 0])
        degenerate = int(np.count_nonzero(np.linalg.norm(cross, axis=1) == 0))
    else:
        degenerate = 0

    return {
        "triangles": len(mesh),
        "surfaceArea": surface_area(mesh),
        "unpairedEdges": len(edges),
        "degenerateTriangles": degenerate,
        "watertight": len(mesh) > 0 and not edges,
    }


def generate_slices(min_z, max_z, layer_height):
    # Repeated addition, inclusive upper bound: the last plane can land on
    # max_z or fall just short of it depending on rounding.
    if min_z + layer_height == min_z or (max_z - min_z) / layer_height > MAX_LAYERS:
        raise ConfigError(f"layer height {layer_height!r} is too small to slice Z {min_z} to {max_z}")
    z_values = []
    z = min_z
    while z <= max_z:
        z_values.append(z)
        z += layer_height
    return z_values


def candidate_mask(vertices, z):
    """Triangles with at least one edge whose Z range contains z (inclusive)."""
    zs = vertices[:, :, 2]
    mask = np.zeros(len(vertices), dtype=bool)
    for a, b in EDGES:
        low = np.minimum(zs[:, a], zs[:, b])
        high = np.maximum(zs[:, a], zs[:, b])
        mask |= (low <= z) & (z <= high)
    return mask


def averaged_intersections(vertices, z):
    """One representative XY point per triangle.

    Interpolates along v1->v2 and v2->v3 and averages the two results. An edge
    with no Z extent divides by zero and yields inf/NaN coordinates.
    """
    v1, v2, v3 = vertices[:, 0], vertices[:, 1], vertices[:, 2]
    with np.errstate(divide='ignore', invalid='ignore'):
        t1 = (z - v1[:, 2]) / (v2[:, 2] - v1[:, 2])
        t2 = (z - v2[:, 2]) / (v3[:, 2] - v2[:, 2])
        p1 = v1[:, :2] + t1[:, None] * (v2[:, :2] - v1[:, :2])
        p2 = v2[:, :2] + t2[:, None] * (v3[:, :2] - v2[:, :2])
        return (p1 + p2) / 2


def triangle_plane_segment(triangle, z):
    """Chord cut from one triangle by the plane, or None.

    Coplanar triangles and triangles touching the plane in a single point
    produce no chord.
    """
    distances = triangle[:, 2] - z
    if np.all(distances == 0):
        return None

    points = []
    for a, b in EDGES:
        da, db = distances[a], distances[b]
        if da == 0:
            point = (float(triangle[a, 0]), float(triangle[a, 1]))
        elif da * db < 0:
            ratio = da / (da - db)
            point = (float(triangle[a, 0] + ratio * (triangle[b, 0] - triangle[a, 0])),
                     float(triangle[a, 1] + ratio * (triangle[b, 1] - triangle[a, 1])))
        else:
            continue
        if point not in points:
            points.append(point)

    if len(points) != 2:
        return None
    return points[0], points[1]


def _next_endpoint(neighbours, tail, used, count):
    for j in neighbours:
        if j >= count or j == tail or j // 2 == tail // 2 or used[j // 2]:
            continue
        return int(j)
    return None


def _walk(tail, neighbours, used, count):
    path = []
    while True:
        j = _next_endpoint(neighbours[tail], tail, used, count)
        if j is None:
            return path
        used[j // 2] = True
        tail = j ^ 1
        path.append(tail)


def stitch_segments(segments, tolerance=STITCH_TOLERANCE):
    """Chain chords sharing endpoints into polylines.

    Returns a list of ``(points, closed)`` where ``points`` is an (n, 2)
    array. A closed chain does not repeat its first point at the end.
    """
    if not segments:
        return []

    endpoints = np.array([point for segment in segments for point in segment], dtype=np.float64)
    count = len(endpoints)
    tree = KDTree(endpoints)
    _, neighbours = tree.query(endpoints, k=min(STITCH_NEIGHBOURS, count), distance_upper_bound=tolerance)
    neighbours = np.asarray(neighbours).reshape(count, -1)

    used = [False] * len(segments)
    chains = []
    for start in range(len(segments)):
        if used[start]:
            continue
        used[start] = True
        head, tail = 2 * start, 2 * start + 1

        forward = _walk(tail, neighbours, used, count)
        last = forward[-1] if forward else tail
        if len(forward) >= 2 and head in neighbours[last]:
            chains.append((endpoints[[head, tail] + forward[:-1]], True))
            continue

        backward = _walk(head, neighbours, used, count)
        order = backward[::-1] + [head, tail] + forward
        chains.append((endpoints[order], False))
    return chains


def point_contour(vertices, z):
    """Single unordered contour of averaged points, in triangle order."""
    hits = averaged_intersections(vertices[candidate_mask(vertices, z)], z)
    return Contour(tuple(Point3(float(x), float(y), z) for x, y in hits), closed=False)


def segment_contours(vertices, z, tolerance=STITCH_TOLERANCE):
    """Closed polygons and open polylines stitched from triangle chords."""
    segments = []
    seen = set()
    for triangle in vertices[candidate_mask(vertices, z)]:
        segment = triangle_plane_segment(triangle, z)
        if segment is None:
            continue
        key = tuple(sorted(segment))
        # an edge lying in the plane is reported by both adjacent triangles
        if key in seen:
            continue
        seen.add(key)
        segments.append(segment)

    return tuple(
        Contour(tuple(Point3(float(x), float(y), z) for x, y in points), closed=closed)
        for points, closed in stitch_segments(segments, tolerance)
    )


def _non_finite_points(contours):
    return sum(1 for contour in contours for p in contour.points
               if not (np.isfinite(p.x) and np.isfinite(p.y)))


def slice_mesh(mesh, config):
    """Cut the mesh into one Layer per plane height from min Z to max Z."""
    config.check_layer_height()
    if config.intersection_mode not in INTERSECTION_MODES:
        raise ConfigError(f"unknown intersection mode {config.intersection_mode!r}")

    box = bounding_box(mesh)
    vertices = mesh.vertex_array()
    layers = []
    non_finite = 0
    for z in generate_slices(box.min_z, box.max_z, config.layer_height):
        if config.intersection_mode == "segment":
            contours = segment_contours(vertices, z)
        else:
            contour = point_contour(vertices, z)
            contours = (contour,) if contour.points else ()
        non_finite += _non_finite_points(contours)

        infill = ()
        if contours:
            infill = tuple(generate_infill(contours, z, box, config.infill_density,
                                           strategy=config.infill_strategy))
        layers.append(Layer(z, contours, infill))
        log.debug("Layer %d at Z=%.3f: %d contours, %d infill lines",
                  len(layers) - 1, z, len(contours), len(infill))

    if non_finite:
        warnings.warn(f"{non_finite} contour points have non-finite coordinates "
                      f"(triangle edges with no Z extent)", GeometryWarning, stacklevel=2)
    log.info("Sliced %d triangles into %d layers (Z %.3f to %.3f, step %s)",
             len(mesh), len(layers), box.min_z, box.max_z, config.layer_height)
    return layers
