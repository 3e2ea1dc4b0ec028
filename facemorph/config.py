# Author: RD7
# Purpose: Configuration settings for the facemorph engine
# Created: 2025-10-03

from __future__ import annotations

from dataclasses import dataclass, field

from facemorph.methods.warp import BORDER_MODES

# Note: The source of truth for configurable default values is in the argument parsers
#       The source of truth for non-configurable default values is in the dataclass definitions


@dataclass(frozen=True)
class MorphCfg:
    """Per-frame morph options (ratios are supplied per call)."""

    pyramid_levels  :   int = 4
    lenient         :   bool = False    # skip singular triangles instead of aborting
    border_mode     :   str = "reflect101"
    workers         :   int = 1

    def __post_init__(self) -> None:
        if self.pyramid_levels < 1:
            raise ValueError("pyramid_levels must be a positive integer")
        if self.border_mode not in BORDER_MODES:
            raise ValueError(f"border_mode must be one of {sorted(BORDER_MODES)}")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")


@dataclass(frozen=True)
class SharpenCfg:
    sigma           :   float = 1.0
    threshold       :   float = 0.3


@dataclass(frozen=True)
class DebugCfg:

    # if show_debug is flagged, then everything else defaults to True
    show_debug      :   bool | None = None
    mesh            :   bool = False
    points          :   bool = False

    def enabled(self, layer: str) -> bool:
        if self.show_debug:
            return True
        return bool(getattr(self, layer, False))


@dataclass(frozen=True)
class OverlayCfg:
    mesh_a_color    : str = "#FF0000"  # hex RGB
    mesh_b_color    : str = "#00FF00"
    mesh_morph_color: str = "#0000FF"
    mesh_width      : int = 1

    pts_color       : str = "#FFFF00"
    pts_radius      : int = 1

    previous_weight : float = 0.5


@dataclass(frozen=True)
class Config:
    morph: MorphCfg = field(default_factory=MorphCfg)
    sharpen: SharpenCfg = field(default_factory=SharpenCfg)
    debug: DebugCfg = field(default_factory=DebugCfg)
    overlay: OverlayCfg = field(default_factory=OverlayCfg)
