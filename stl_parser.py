import logging
import struct
from abc import ABC, abstractmethod

from mesh_types import Mesh, Point3, Triangle
from slicer_errors import InvalidMeshError

log = logging.getLogger(__name__)

HEADER_SIZE = 80
FACET_SIZE = 50  # normal + 3 vertices (12 floats) + attribute byte count


class MeshSource(ABC):
    """Produces a Mesh from raw model data handed over by the host."""

    @abstractmethod
    def load(self, data) -> Mesh:
        pass


class StlMeshSource(MeshSource):
    """Reads binary or ASCII STL data."""

    def load(self, data) -> Mesh:
        if data is None:
            raise InvalidMeshError("no mesh data supplied")
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidMeshError(f"expected STL bytes or text, got {type(data).__name__}")
        data = bytes(data)
        if not data:
            raise InvalidMeshError("mesh data is empty")
        if _looks_like_binary(data):
            triangles = parse_binary_stl(data)
        elif data.lstrip().startswith(b"solid"):
            triangles = parse_ascii_stl(data.decode("ascii", errors="replace"))
        else:
            raise InvalidMeshError("data is neither binary nor ASCII STL")
        log.info("Parsed STL with %d triangles", len(triangles))
        return Mesh(triangles)


class SyntheticCubeSource(MeshSource):
    """Demo source: ignores its input and always yields an origin-centred cube."""

    def __init__(self, size=10.0):
        self.size = size

    def load(self, data=None) -> Mesh:
        log.info("Demo mode: substituting a %.1f mm test cube for the supplied data", self.size)
        return create_test_cube(self.size)


def _looks_like_binary(data):
    if len(data) < HEADER_SIZE + 4:
        return False
    triangle_count = struct.unpack_from('<I', data, HEADER_SIZE)[0]
    expected = HEADER_SIZE + 4 + triangle_count * FACET_SIZE
    if data.startswith(b"solid"):
        return len(data) == expected
    # trailing padding after the last facet is tolerated
    return len(data) >= expected


def parse_binary_stl(data):
    if len(data) < HEADER_SIZE + 4:
        raise InvalidMeshError("binary STL is shorter than its header")
    triangle_count = struct.unpack_from('<I', data, HEADER_SIZE)[0]
    expected = HEADER_SIZE + 4 + triangle_count * FACET_SIZE
    if len(data) < expected:
        raise InvalidMeshError(
            f"binary STL declares {triangle_count} triangles but holds only {len(data)} bytes")

    triangles = []
    offset = HEADER_SIZE + 4
    for _ in range(triangle_count):
        # skip the stored normal, winding is not trusted anyway
        values = struct.unpack_from('<12f', data, offset)
        vertex1 = Point3(*values[3:6])
        vertex2 = Point3(*values[6:9])
        vertex3 = Point3(*values[9:12])
        triangles.append(Triangle(vertex1, vertex2, vertex3))
        offset += FACET_SIZE
    return triangles


def parse_ascii_stl(text):
    triangles = []
    vertices = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        parts = line.split()
        if not parts:
            continue
        keyword = parts[0].lower()
        if keyword == "vertex":
            try:
                vertices.append(Point3(*(float(v) for v in parts[1:4])))
            except (TypeError, ValueError) as exc:
                raise InvalidMeshError(f"bad vertex on line {line_number}: {line.strip()!r}") from exc
        elif keyword == "endfacet":
            if len(vertices) != 3:
                raise InvalidMeshError(f"facet ending on line {line_number} has {len(vertices)} vertices")
            triangles.append(Triangle(*vertices))
            vertices = []
    if not triangles:
        raise InvalidMeshError("ASCII STL contains no facets")
    return triangles


def read_stl(filename, source=None):
    with open(filename, 'rb') as file:
        data = file.read()
    return (source or StlMeshSource()).load(data)


def create_test_cube(size=10.0):
    half = size / 2
    p1 = Point3(-half, -half, -half)
    p2 = Point3(half, -half, -half)
    p3 = Point3(half, half, -half)
    p4 = Point3(-half, half, -half)
    p5 = Point3(-half, -half, half)
    p6 = Point3(half, -half, half)
    p7 = Point3(half, half, half)
    p8 = Point3(-half, half, half)

    return Mesh([
        Triangle(p1, p2, p3), Triangle(p1, p3, p4),  # bottom
        Triangle(p5, p6, p7), Triangle(p5, p7, p8),  # top
        Triangle(p1, p2, p6), Triangle(p1, p6, p5),  # front
        Triangle(p3, p4, p8), Triangle(p3, p8, p7),  # back
        Triangle(p2, p3, p7), Triangle(p2, p7, p6),  # right
        Triangle(p1, p4, p8), Triangle(p1, p8, p5),  # left
    ])
