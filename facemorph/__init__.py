"""Triangle-mesh image morphing with multi-band blending."""

from .config import Config, DebugCfg, MorphCfg, OverlayCfg, SharpenCfg
from .errors import (
    DegenerateInputError,
    DimensionMismatchError,
    LengthMismatchError,
    MorphError,
    OutOfBoundsError,
    SingularTriangleError,
)
from .pipeline import FrameResult, MorphPipeline, morph_frame

__version__ = "0.1.0"

__all__ = [
    "Config",
    "DebugCfg",
    "MorphCfg",
    "OverlayCfg",
    "SharpenCfg",
    "MorphError",
    "OutOfBoundsError",
    "DegenerateInputError",
    "LengthMismatchError",
    "SingularTriangleError",
    "DimensionMismatchError",
    "FrameResult",
    "MorphPipeline",
    "morph_frame",
]
