import json


def build_layer_info(layers, config, box):
    """Summary of a slicing run as plain data (camelCase keys, JSON-ready)."""
    return {
        "layerHeight": config.layer_height,
        "infillDensity": config.infill_density,
        "totalLayers": len(layers),
        "boundingBox": list(box),
        "layers": [
            {
                "height": layer.height,
                "contourCount": layer.contour_count,
                "infillCount": layer.infill_count,
            }
            for layer in layers
        ],
    }


def export_layer_summary(layers, config, box, indent=2):
    return json.dumps(build_layer_info(layers, config, box), indent=indent)
