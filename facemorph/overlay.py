# Author: RD7
# Purpose: Diagnostic mesh overlay for morph analysis
# Created: 2025-10-06

from __future__ import annotations

import numpy as np
from typing import Optional, Sequence, Tuple

import cv2

from facemorph.config import Config
from facemorph.methods.mesh import TriangleMesh, mesh_edges

_COLOR_MAP = {
    "red": "#FF0000",
    "green": "#00FF00",
    "blue": "#0000FF",
    "yellow": "#FFFF00",
    "white": "#FFFFFF",
    "black": "#000000",
}


class MeshOverlay:
    """Render mesh diagnostics onto a BGR canvas."""

    def __init__(self, cfg: Config):
        self.cfg = cfg
        self._layers = {
            "edges": self._draw_edges,
            "points": self._draw_points,
        }

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def draw(self, canvas: np.ndarray, instructions: dict | Sequence[dict] | None) -> np.ndarray:
        """Draw *instructions* whose debug flag is enabled; returns *canvas*."""
        if canvas is None or not instructions:
            return canvas

        items = instructions if isinstance(instructions, (list, tuple)) else [instructions]
        items = sorted(items, key=lambda item: item.get("z", 0))

        for item in items:
            if not self.cfg.debug.enabled(item.get("debug", "")):
                continue
            fn = self._layers.get(item.get("draw"))
            if fn:
                canvas = fn(canvas, item)
        return canvas

    # ------------------------------------------------------------------ #
    # Layers
    # ------------------------------------------------------------------ #
    def _draw_edges(self, canvas: np.ndarray, overlay: dict) -> np.ndarray:
        edges = overlay.get("edges")
        if edges is None or len(edges) == 0:
            return canvas

        color = _resolve_color(overlay.get("color"), self.cfg.overlay.mesh_morph_color)
        width = max(1, int(overlay.get("width", self.cfg.overlay.mesh_width)))
        lines = [np.rint(edge).astype(np.int32) for edge in np.asarray(edges, dtype=np.float32)]
        cv2.polylines(canvas, lines, isClosed=False, color=color, thickness=width, lineType=cv2.LINE_AA)
        return canvas

    def _draw_points(self, canvas: np.ndarray, overlay: dict) -> np.ndarray:
        points = overlay.get("location")
        if points is None or len(points) == 0:
            return canvas

        color = _resolve_color(overlay.get("color"), self.cfg.overlay.pts_color)
        radius = max(1, int(overlay.get("size", self.cfg.overlay.pts_radius)))
        for x, y in np.rint(np.asarray(points, dtype=np.float32)).astype(np.int32):
            cv2.circle(canvas, (int(x), int(y)), radius, color, thickness=-1)
        return canvas


def build_mesh_instructions(
    cfg: Config,
    mesh_a: TriangleMesh,
    mesh_b: TriangleMesh,
    mesh_morph: TriangleMesh,
) -> list[dict]:
    """Overlay instructions for the two source meshes and the intermediate one."""

    ov = cfg.overlay
    instructions: list[dict] = []
    for mesh, color, z in (
        (mesh_a, ov.mesh_a_color, -2),
        (mesh_b, ov.mesh_b_color, -1),
        (mesh_morph, ov.mesh_morph_color, 0),
    ):
        if len(mesh) == 0:
            continue
        instructions.append(
            {
                "draw": "edges",
                "debug": "mesh",
                "edges": mesh_edges(mesh),
                "color": color,
                "width": ov.mesh_width,
                "z": z,
            }
        )
    if len(mesh_morph.points):
        instructions.append(
            {
                "draw": "points",
                "debug": "points",
                "location": mesh_morph.points,
                "color": ov.pts_color,
                "size": ov.pts_radius,
                "z": 1,
            }
        )
    return instructions


def draw_morph_analysis(
    cfg: Config,
    frame: np.ndarray,
    previous: Optional[np.ndarray],
    mesh_a: TriangleMesh,
    mesh_b: TriangleMesh,
    mesh_morph: TriangleMesh,
) -> np.ndarray:
    """Return a new canvas: *frame* mixed with *previous*, with the meshes drawn on top."""

    if previous is None or previous.shape != frame.shape:
        previous = frame
    weight = float(cfg.overlay.previous_weight)
    canvas = cv2.addWeighted(frame, 1.0 - weight, previous, weight, 0.0)
    if canvas.ndim == 2:
        canvas = cv2.cvtColor(canvas, cv2.COLOR_GRAY2BGR)

    instructions = build_mesh_instructions(cfg, mesh_a, mesh_b, mesh_morph)
    return MeshOverlay(cfg).draw(canvas, instructions)


def _resolve_color(value, fallback: str) -> Tuple[int, int, int]:
    """Convert a colour name, hex string or RGB tuple into an OpenCV BGR tuple."""
    if value is None:
        value = fallback
    if isinstance(value, str):
        hex_value = _COLOR_MAP.get(value.lower(), value).lstrip("#")
        if len(hex_value) != 6:
            raise ValueError(f"Unsupported colour: {value}")
        r, g, b = (int(hex_value[i:i + 2], 16) for i in (0, 2, 4))
        return (b, g, r)
    if isinstance(value, (list, tuple)) and len(value) >= 3:
        r, g, b = (int(c) for c in value[:3])
        return (b, g, r)
    raise ValueError(f"Unsupported colour: {value!r}")
