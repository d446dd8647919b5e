import pytest

from mesh_types import Mesh, Point3, Triangle, make_triangle
from slicer_config import SlicerConfig
from stl_parser import create_test_cube


@pytest.fixture
def cube():
    return create_test_cube(10.0)


@pytest.fixture
def tetrahedron():
    a = (0.0, 0.0, 0.0)
    b = (4.0, 0.0, 0.0)
    c = (0.0, 4.0, 0.0)
    d = (0.0, 0.0, 4.0)
    return Mesh([
        make_triangle(a, c, b),
        make_triangle(a, b, d),
        make_triangle(b, c, d),
        make_triangle(c, a, d),
    ])


@pytest.fixture
def single_triangle():
    return Mesh([Triangle(Point3(0.0, 0.0, 0.0), Point3(2.0, 0.0, 2.0), Point3(0.0, 2.0, 4.0))])


@pytest.fixture
def config():
    return SlicerConfig(layer_height=2.0, infill_density=20.0)
