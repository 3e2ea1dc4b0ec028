import argparse
import logging
import sys

from facemorph.controllers.main_controller import MainController
from facemorph.methods.warp import BORDER_MODES


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="facemorph",
                                description="Morph one frame between two landmarked images.")

    # Note: defaults here are the source of truth for default values

    # inputs
    p.add_argument('--image1', required=True, help='First source image')
    p.add_argument('--image2', required=True, help='Second source image')
    p.add_argument('--points1', required=True, help="Landmarks for image1, one 'x y' per line")
    p.add_argument('--points2', required=True, help="Landmarks for image2, one 'x y' per line")
    p.add_argument('--guidance',
                   default=None,
                   help='Structure image driving the blend mask (defaults to image2)')
    p.add_argument('--previous',
                   default=None,
                   help='Previous output frame, used only for the analysis image')

    # blend ratios
    p.add_argument('--shape-ratio',
                   type=float,
                   default=0.5,
                   help='Geometric interpolation between the two point sets')
    p.add_argument('--mask-ratio',
                   type=float,
                   default=0.5,
                   help='Photometric mix between the two warped images')

    # morph settings
    p.add_argument('--pyramid-levels',
                   type=int,
                   default=4,
                   help='Laplacian pyramid depth')
    p.add_argument('--lenient',
                   default=False,
                   action='store_true',
                   help='Skip degenerate triangles instead of aborting the frame')
    p.add_argument('--border',
                   choices=sorted(BORDER_MODES),
                   default="reflect101",
                   help='Border handling when sampling outside the source image')
    p.add_argument('--workers',
                   type=int,
                   default=1,
                   help='Warp both source images concurrently when > 1')

    # outputs
    p.add_argument('--output', required=True, help='Output image path')
    p.add_argument('--analysis',
                   default=None,
                   help='Optional mesh analysis image path')

    # run in debug mode?
    p.add_argument('--debug',
                   default=False,
                   action='store_true',
                   help='Verbose logging')

    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return MainController(args)


if __name__ == "__main__":
    sys.exit(main())
