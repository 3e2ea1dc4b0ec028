# Author: RD7
# Purpose: Main controller for the facemorph command line
# Created: 2025-10-03

import logging
from pathlib import Path

import cv2
import numpy as np

from facemorph.config import Config, DebugCfg, MorphCfg
from facemorph.errors import MorphError
from facemorph.pipeline import MorphPipeline

logger = logging.getLogger(__name__)


def build_config(args):
    # morph settings
    morph = MorphCfg(
        pyramid_levels=args.pyramid_levels,
        lenient=args.lenient,
        border_mode=args.border,
        workers=args.workers,
    )

    # debugging settings (the analysis canvas needs the mesh layer)
    debug = DebugCfg(
        show_debug=args.debug,
        mesh=args.analysis is not None,
        points=args.analysis is not None,
    )

    return Config(morph=morph, debug=debug)


def _read_image(path):
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise OSError(f"could not read image: {path}")
    return image


def _read_points(path):
    pts = np.loadtxt(str(path), dtype=np.float32, ndmin=2)
    if pts.shape[1] != 2:
        raise OSError(f"expected 'x y' rows in {path}")
    return pts


def _write_image(path, image):
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), image):
        raise OSError(f"could not write image: {path}")


def MainController(args):
    try:
        # Build configuration from command line arguments
        cfg = build_config(args)

        image1 = _read_image(args.image1)
        image2 = _read_image(args.image2)
        guidance = _read_image(args.guidance) if args.guidance else image2
        previous = _read_image(args.previous) if args.previous else None
        points1 = _read_points(args.points1)
        points2 = _read_points(args.points2)
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 2

    pipe = MorphPipeline(cfg)
    try:
        result = pipe.morph(
            image1, image2, guidance, points1, points2,
            args.shape_ratio, args.mask_ratio,
            previous=previous,
        )
    except MorphError as exc:
        logger.error("morph failed: %s", exc)
        return 1
    except ValueError as exc:
        logger.error("invalid arguments: %s", exc)
        return 2

    try:
        _write_image(args.output, result.image)
        logger.info("wrote %s (%d triangles)", args.output, len(result.triangles))

        if args.analysis and result.analysis is not None:
            _write_image(args.analysis, result.analysis)
            logger.info("wrote %s", args.analysis)
    except (cv2.error, OSError) as exc:
        logger.error("could not write output: %s", exc)
        return 2

    return 0
