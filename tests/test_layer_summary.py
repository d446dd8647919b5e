import json

from layer_summary import build_layer_info, export_layer_summary
from mesh_types import BoundingBox, Contour, Layer, Point3
from slicer_config import SlicerConfig


def test_summary_structure():
    layers = [
        Layer(0.0, (Contour((Point3(0.0, 0.0, 0.0),)),), ((Point3(0.0, 0.0, 0.0), Point3(0.0, 1.0, 0.0)),)),
        Layer(0.5),
    ]
    box = BoundingBox(0.0, 0.0, 0.0, 1.0, 1.0, 0.5)
    info = json.loads(export_layer_summary(layers, SlicerConfig(layer_height=0.5, infill_density=30.0), box))

    assert info == {
        "layerHeight": 0.5,
        "infillDensity": 30.0,
        "totalLayers": 2,
        "boundingBox": [0.0, 0.0, 0.0, 1.0, 1.0, 0.5],
        "layers": [
            {"height": 0.0, "contourCount": 1, "infillCount": 1},
            {"height": 0.5, "contourCount": 0, "infillCount": 0},
        ],
    }


def test_empty_run():
    info = build_layer_info([], SlicerConfig(), BoundingBox(0, 0, 0, 0, 0, 0))
    assert info["totalLayers"] == 0
    assert info["layers"] == []
    assert len(info["boundingBox"]) == 6
