import logging

log = logging.getLogger(__name__)

CONTOUR_E_STEP = 0.1
INFILL_E_STEP = 0.05
Z_FEED = 1200
TRAVEL_FEED = 3000
PRINT_FEED = 1800
FINAL_LIFT = 10.0


def generate_gcode_header(config=None):
    gcode = ["; Generated by layer-slicer"]
    if config is not None:
        gcode.append(f"; Layer height: {config.layer_height:g}mm")
        gcode.append(f"; Infill density: {config.infill_density:g}%")
    gcode.append("")
    gcode.append("G21 ; Set units to mm")
    gcode.append("G90 ; Absolute positioning")
    gcode.append("M82 ; Extruder absolute mode")
    gcode.append("")
    return gcode


def generate_gcode_footer(layers):
    last_height = layers[-1].height if layers else 0.0
    return [
        "",
        f"G0 Z{last_height + FINAL_LIFT:.3f} F{Z_FEED}",
        "M84 ; Disable steppers",
    ]


def travel_to(z, point):
    return [
        f"G0 Z{z:.3f} F{Z_FEED}",
        f"G0 X{point.x:.3f} Y{point.y:.3f} F{TRAVEL_FEED}",
    ]


def extrude_to(point, e):
    return f"G1 X{point.x:.3f} Y{point.y:.3f} E{e:.4f} F{PRINT_FEED}"


def contour_to_gcode(contour, z, e, e_step=CONTOUR_E_STEP):
    """Returns the moves for one contour and the extrusion total after it."""
    points = contour.points
    if not points:
        return [], e

    gcode = travel_to(z, points[0])
    targets = list(points[1:])
    if contour.closed and len(points) > 1:
        targets.append(points[0])
    for point in targets:
        e += e_step
        gcode.append(extrude_to(point, e))
    return gcode, e


def infill_line_to_gcode(line, z, e, e_step=INFILL_E_STEP):
    if len(line) < 2:
        return [], e
    start, end = line[0], line[1]
    gcode = travel_to(z, start)
    e += e_step
    gcode.append(extrude_to(end, e))
    return gcode, e


def layer_to_gcode(index, layer, e, contour_e_step=CONTOUR_E_STEP, infill_e_step=INFILL_E_STEP):
    gcode = [f"; Layer {index} at Z={layer.height:.3f}"]

    for contour in layer.contours:
        moves, e = contour_to_gcode(contour, layer.height, e, contour_e_step)
        gcode.extend(moves)

    for line in layer.infill:
        moves, e = infill_line_to_gcode(line, layer.height, e, infill_e_step)
        gcode.extend(moves)

    return gcode, e


def generate_gcode(layers, config=None, contour_e_step=CONTOUR_E_STEP, infill_e_step=INFILL_E_STEP):
    """Render layers to G-code text.

    The extrusion total starts at zero for every call and only grows; it is
    handed from layer to layer rather than reset.
    """
    gcode = generate_gcode_header(config)
    e = 0.0

    for index, layer in enumerate(layers):
        moves, e = layer_to_gcode(index, layer, e, contour_e_step, infill_e_step)
        gcode.extend(moves)

    gcode.extend(generate_gcode_footer(layers))
    log.debug("Generated %d G-code lines, final extrusion %.4f", len(gcode), e)

    return "\n".join(gcode) + "\n"
