import dataclasses
import math
from dataclasses import dataclass

from slicer_errors import ConfigError

INFILL_STRATEGIES = ("raster", "clip")
INTERSECTION_MODES = ("point", "segment")


@dataclass
class SlicerConfig:
    """Settings for one slicing run.

    Values are stored as given. Degenerate numbers are only rejected by
    ``validate()`` or, for the layer height, when slicing starts.
    """
    layer_height: float = 0.2
    infill_density: float = 20.0
    infill_strategy: str = "raster"
    intersection_mode: str = "point"

    def replace(self, **changes) -> "SlicerConfig":
        return dataclasses.replace(self, **changes)

    def check_layer_height(self) -> None:
        if not (math.isfinite(self.layer_height) and self.layer_height > 0):
            raise ConfigError(f"layer height must be a positive finite number, got {self.layer_height!r}")

    def validate(self) -> None:
        """Reject every setting the pipeline would otherwise let through."""
        self.check_layer_height()
        if not (math.isfinite(self.infill_density) and self.infill_density > 0):
            raise ConfigError(f"infill density must be a positive finite percentage, got {self.infill_density!r}")
        if self.infill_strategy not in INFILL_STRATEGIES:
            raise ConfigError(f"unknown infill strategy {self.infill_strategy!r}, expected one of {INFILL_STRATEGIES}")
        if self.intersection_mode not in INTERSECTION_MODES:
            raise ConfigError(f"unknown intersection mode {self.intersection_mode!r}, expected one of {INTERSECTION_MODES}")
