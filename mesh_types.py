from collections import namedtuple
from dataclasses import dataclass

import numpy as np

Point3 = namedtuple('Point3', ['x', 'y', 'z'])
Triangle = namedtuple('Triangle', ['v1', 'v2', 'v3'])
BoundingBox = namedtuple('BoundingBox', ['min_x', 'min_y', 'min_z', 'max_x', 'max_y', 'max_z'])

EMPTY_BOX = BoundingBox(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


def make_triangle(v1, v2, v3):
    """Build a Triangle from three (x, y, z) sequences."""
    return Triangle(Point3(*map(float, v1)), Point3(*map(float, v2)), Point3(*map(float, v3)))


class Mesh:
    """Ordered, read-only triangles. Closedness and winding are not checked."""

    def __init__(self, triangles=()):
        self._triangles = tuple(triangles)

    @property
    def triangles(self):
        return self._triangles

    def __len__(self):
        return len(self._triangles)

    def __iter__(self):
        return iter(self._triangles)

    def __getitem__(self, index):
        return self._triangles[index]

    def __eq__(self, other):
        if not isinstance(other, Mesh):
            return NotImplemented
        return self._triangles == other._triangles

    def __repr__(self):
        return f"Mesh({len(self._triangles)} triangles)"

    def vertex_array(self):
        # (n, 3, 3) float64
        if not self._triangles:
            return np.empty((0, 3, 3), dtype=np.float64)
        return np.array(self._triangles, dtype=np.float64)


@dataclass(frozen=True)
class Contour:
    points: tuple
    closed: bool = False

    def __len__(self):
        return len(self.points)


@dataclass(frozen=True)
class Layer:
    height: float
    contours: tuple = ()
    infill: tuple = ()

    @property
    def contour_count(self):
        return len(self.contours)

    @property
    def infill_count(self):
        return len(self.infill)
