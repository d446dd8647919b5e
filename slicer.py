import argparse
import json
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

from gcode_generator import generate_gcode
from geometry_ops import bounding_box, mesh_report, slice_mesh
from layer_summary import build_layer_info, export_layer_summary
from logging_config import setup_logging
from mesh_types import Mesh, make_triangle
from slicer_config import INFILL_STRATEGIES, INTERSECTION_MODES, SlicerConfig
from slicer_errors import InvalidMeshError, SlicerError
from stl_parser import StlMeshSource, SyntheticCubeSource

log = logging.getLogger(__name__)


@dataclass
class SlicingResult:
    gcode: str
    layer_info: dict
    bounding_box: list
    total_layers: int
    processing_time: float  # milliseconds
    mesh_info: dict = field(default_factory=dict)


class Slicer:
    """configure, load a mesh, slice. Nothing is cached between slicing calls."""

    def __init__(self, config=None, mesh_source=None):
        self.config = config or SlicerConfig()
        self.mesh_source = mesh_source or StlMeshSource()
        self.mesh = Mesh()

    def configure(self, layer_height, infill_density, strict=False, **options):
        config = self.config.replace(layer_height=layer_height, infill_density=infill_density, **options)
        if strict:
            config.validate()
        self.config = config
        return config

    def load_mesh(self, mesh_data):
        """Install a Mesh, a sequence of (v1, v2, v3) vertex triples, or raw model data."""
        if isinstance(mesh_data, Mesh):
            mesh = mesh_data
        elif isinstance(mesh_data, (list, tuple)):
            try:
                mesh = Mesh(make_triangle(*triangle) for triangle in mesh_data)
            except (TypeError, ValueError) as exc:
                raise InvalidMeshError(f"cannot read triangles from sequence: {exc}") from exc
        else:
            mesh = self.mesh_source.load(mesh_data)
        if not isinstance(mesh, Mesh):
            raise InvalidMeshError(f"mesh source returned {type(mesh).__name__}, not a Mesh")

        self.mesh = mesh
        report = mesh_report(mesh)
        if len(mesh) and not report["watertight"]:
            log.warning("Mesh is not closed: %d unpaired edges", report["unpairedEdges"])
        log.info("Loaded mesh with %d triangles", len(mesh))
        return True

    def load_demo_cube(self, size=10.0):
        return self.load_mesh(SyntheticCubeSource(size).load())

    def bounding_box(self):
        return list(bounding_box(self.mesh))

    def slice_layers(self):
        return slice_mesh(self.mesh, self.config)

    def slice_to_gcode(self):
        return generate_gcode(self.slice_layers(), self.config)

    def slice_summary(self):
        return export_layer_summary(self.slice_layers(), self.config, bounding_box(self.mesh))

    def slice_model(self, mesh_data, config=None):
        """Load, slice and render in one go, timing the whole run."""
        start_time = time.perf_counter()
        if config is not None:
            self.config = config
        self.load_mesh(mesh_data)

        box = bounding_box(self.mesh)
        layers = self.slice_layers()
        layer_info = build_layer_info(layers, self.config, box)
        gcode = generate_gcode(layers, self.config)

        processing_time = (time.perf_counter() - start_time) * 1000
        log.info("Slicing finished in %.2f ms: %d layers, %d bytes of G-code",
                 processing_time, len(layers), len(gcode))
        return SlicingResult(
            gcode=gcode,
            layer_info=layer_info,
            bounding_box=list(box),
            total_layers=len(layers),
            processing_time=processing_time,
            mesh_info=mesh_report(self.mesh),
        )


def build_parser():
    p = argparse.ArgumentParser(description="Slice an STL mesh into layers and print G-code to stdout")
    p.add_argument("input", nargs="?", help="Input STL file (binary or ASCII)")
    p.add_argument("--demo", action="store_true", help="Ignore the input and slice a 10 mm test cube")
    p.add_argument("--layer-height", "-l", type=float, default=0.2)
    p.add_argument("--infill-density", "-d", type=float, default=20.0, help="Infill density in percent")
    p.add_argument("--infill-strategy", choices=INFILL_STRATEGIES, default="raster")
    p.add_argument("--intersection-mode", choices=INTERSECTION_MODES, default="point")
    p.add_argument("--strict", action="store_true", help="Reject degenerate settings up front")
    output = p.add_mutually_exclusive_group()
    output.add_argument("--summary", action="store_true", help="Print the layer summary JSON instead of G-code")
    output.add_argument("--report", action="store_true", help="Print mesh diagnostics instead of G-code")
    p.add_argument("--verbose", "-v", action="store_true")
    p.add_argument("--log-file", help="Also write log messages to this file")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    slicer = Slicer()
    try:
        slicer.configure(args.layer_height, args.infill_density, strict=args.strict,
                         infill_strategy=args.infill_strategy,
                         intersection_mode=args.intersection_mode)
        if args.demo:
            slicer.load_demo_cube()
        elif args.input:
            slicer.load_mesh(Path(args.input).read_bytes())
        else:
            raise InvalidMeshError("no input file given (use --demo for the test cube)")

        if args.report:
            output = json.dumps(mesh_report(slicer.mesh), indent=2) + "\n"
        elif args.summary:
            output = slicer.slice_summary() + "\n"
        else:
            output = slicer.slice_to_gcode()
    except (SlicerError, OSError) as exc:
        log.error("Slicing failed: %s", exc)
        return 1

    sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
