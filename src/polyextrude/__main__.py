#!/usr/bin/env python3
"""
Command line interface for polyextrude.

Usage:
    python -m polyextrude list
    python -m polyextrude info (SAMPLE | --ring FILE) [--config FILE]
    python -m polyextrude build (SAMPLE | --ring FILE) --output FILE.stl
        [--height H] [--2d] [--no-bottom] [--combined] [--world] [--ascii]
        [--color COLOR] [--config FILE]

Ring files are YAML (or JSON) documents with a ``ring`` list of [x, z]
pairs and an optional ``holes`` list of rings.

Examples:
    # Show area and centroid of the bundled cross
    python -m polyextrude info cross

    # Extrude the Gotland outline and write a binary STL
    python -m polyextrude build gotland --height 0.05 --output gotland.stl

    # Flat polygon with a hole, from a ring file
    python -m polyextrude build --ring plot.yaml --2d --output plot.stl
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from . import __version__
from .config import load_config
from .errors import PolyExtrudeError
from .prism import Prism, PrismRequest, build_prism
from .samples import list_samples, load_sample, rings_from_mapping


def load_request(args: argparse.Namespace) -> PrismRequest:
    """Turn the sample name or ``--ring`` file on the command line into a request."""
    if args.ring:
        path = Path(args.ring)
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        ring, holes = rings_from_mapping(data, str(path))
        name = data.get('name') or path.stem
    elif args.sample:
        ring, holes = load_sample(args.sample)
        name = args.sample
    else:
        raise ValueError('give a sample name or --ring FILE')

    return PrismRequest(
        name=name,
        ring=ring,
        holes=holes,
        height=getattr(args, 'height', 1.0),
        is_3d=False if getattr(args, 'flat', False) else None,
        use_bottom_in_3d=False if getattr(args, 'no_bottom', False) else None,
        color=getattr(args, 'color', 'grey'),
    )


def describe(prism: Prism) -> str:
    lines = [
        f"name:      {prism.name}",
        f"mode:      {'3D prism' if prism.is_3d else '2D polygon'}",
        f"area:      {prism.area:.10g}",
        f"centroid:  ({prism.centroid[0]:.10g}, {prism.centroid[1]:.10g})",
        f"ring:      {len(prism.ring)} points, {len(prism.holes)} hole(s)",
    ]
    for label, mesh in (('bottom', prism.bottom_mesh), ('top', prism.top_mesh),
                        ('surround', prism.surround_mesh)):
        if mesh is not None:
            lines.append(f"{label + ':':<10} {mesh.vertex_count} vertices, "
                         f"{mesh.triangle_count} triangles")
    return "\n".join(lines)


def cmd_list(args: argparse.Namespace) -> int:
    for name in list_samples():
        print(name)
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    prism = build_prism(load_request(args), config)
    print(describe(prism))
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    from .io.stl import write_stl

    config = load_config(args.config)
    prism = build_prism(load_request(args), config)
    output = Path(args.output)

    if args.combined or config.combine:
        write_stl(prism, output, binary=not args.ascii, name=prism.name, world=args.world)
        written = [output]
    else:
        parts = (('bottom', prism.bottom_mesh), ('top', prism.top_mesh),
                 ('surround', prism.surround_mesh))
        written = []
        for label, mesh in parts:
            if mesh is None:
                continue
            if args.world:
                mesh = mesh.translated((prism.centroid[0], 0.0, prism.centroid[1]))
            path = output.with_name(f"{output.stem}_{label}{output.suffix}")
            write_stl(mesh, path, binary=not args.ascii, name=f"{label}_{prism.name}")
            written.append(path)

    print(describe(prism))
    for path in written:
        print(f"wrote {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='polyextrude',
        description='Triangulate 2D polygons and extrude them into prisms',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='increase log output (-v info, -vv debug)')
    sub = parser.add_subparsers(dest='command', required=True)

    p_list = sub.add_parser('list', help='list bundled sample polygons')
    p_list.set_defaults(func=cmd_list)

    def add_input(p: argparse.ArgumentParser) -> None:
        p.add_argument('sample', nargs='?', help='name of a bundled sample')
        p.add_argument('--ring', metavar='FILE', help='YAML/JSON file with ring and holes')
        p.add_argument('--config', metavar='FILE', help='YAML config file')
        p.add_argument('--2d', dest='flat', action='store_true',
                       help='build a flat polygon instead of a prism')
        p.add_argument('--no-bottom', action='store_true',
                       help='omit the bottom face of a prism')
        p.add_argument('--height', type=float, default=1.0, help='extrusion height')
        p.add_argument('--color', default='grey', help='display color (name or #rrggbb)')

    p_info = sub.add_parser('info', help='print area, centroid and mesh sizes')
    add_input(p_info)
    p_info.set_defaults(func=cmd_info)

    p_build = sub.add_parser('build', help='build meshes and write STL')
    add_input(p_build)
    p_build.add_argument('--output', '-o', required=True, help='output STL path')
    p_build.add_argument('--combined', action='store_true',
                         help='write one combined mesh instead of one file per part')
    p_build.add_argument('--world', action='store_true',
                         help='translate meshes back to the input coordinates')
    p_build.add_argument('--ascii', action='store_true', help='write ASCII STL')
    p_build.set_defaults(func=cmd_build)

    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    try:
        return args.func(args)
    except PolyExtrudeError as exc:
        print(f"error: {exc.kind}: {exc}", file=sys.stderr)
        return 1
    except (KeyError, ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
