import argparse
import logging
import sys
from typing import List, Optional

from . import preview
from .config import RenderConfig, Scene
from .geometry import Vec3
from .model import Model
from .pipeline import SHADERS, render, render_shadowed

_LOG = logging.getLogger("softraster.cli")


def _vec3(values) -> Vec3:
    return Vec3(*(float(v) for v in values))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="softraster",
        description="Render a textured OBJ mesh on the CPU, optionally with shadow mapping.")
    parser.add_argument("mesh", help="Wavefront OBJ file; textures are read from <stem>_diffuse.tga, "
                                     "<stem>_nm_tangent.tga and <stem>_spec.tga")
    parser.add_argument("-o", "--output", default="framebuffer.tga", help="Output image path")
    parser.add_argument("--depth-output", default=None,
                        help="Write the depth image here (light view for 'shadow')")
    parser.add_argument("--shader", choices=SHADERS, default="shadow")
    parser.add_argument("--width", type=int, default=800)
    parser.add_argument("--height", type=int, default=800)
    parser.add_argument("--eye", type=float, nargs=3, metavar=("X", "Y", "Z"), default=(1.0, 1.0, 4.0))
    parser.add_argument("--center", type=float, nargs=3, metavar=("X", "Y", "Z"), default=(0.0, 0.0, 0.0))
    parser.add_argument("--up", type=float, nargs=3, metavar=("X", "Y", "Z"), default=(0.0, 1.0, 0.0))
    parser.add_argument("--light", type=float, nargs=3, metavar=("X", "Y", "Z"), default=(1.0, 1.0, 0.0),
                        help="Direction towards the light")
    parser.add_argument("--ambient-floor", type=float, default=0.3,
                        help="Fraction of light kept by shadowed fragments")
    parser.add_argument("--shadow-bias", type=float, default=43.34)
    parser.add_argument("--show", action="store_true", help="Open a preview window when done")
    parser.add_argument("--log-level", default="INFO",
                        choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = RenderConfig(width=args.width, height=args.height,
                              ambient_floor=args.ambient_floor,
                              shadow_bias=args.shadow_bias)
        scene = Scene(eye=_vec3(args.eye), center=_vec3(args.center),
                      up=_vec3(args.up), light_dir=_vec3(args.light))
    except ValueError as e:
        _LOG.error("invalid render settings: %s", e)
        return 2

    try:
        model = Model(args.mesh)
    except (OSError, ValueError) as e:
        _LOG.error("cannot read mesh %s: %s", args.mesh, e)
        return 1

    depth_image = None
    if args.shader == "shadow":
        result = render_shadowed(model, config, scene)
        frame, depth_image = result.frame, result.depth_image
    else:
        frame, _ = render(model, config, scene, args.shader)
        if args.shader == "depth":
            depth_image = frame

    frame.flip_vertically()
    frame.encode_to_file(args.output)
    _LOG.info("wrote %s", args.output)

    if args.depth_output and depth_image is not None:
        if depth_image is not frame:
            depth_image.flip_vertically()
        depth_image.encode_to_file(args.depth_output)
        _LOG.info("wrote %s", args.depth_output)

    if args.show:
        preview.show(frame, title=f"softraster: {args.shader}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
