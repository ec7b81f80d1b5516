#!/usr/bin/env python3
"""
CLI for classifying point sets against a closed STL surface.

Usage:
    python -m polyinside MESH.stl POINTS.xyz [--config FILE] [--seed N]
        [--max-fallback N] [--tolerance X] [--validate]
        [--evaluate] [--html FILE] [-v]

Each output line is ``x y z classification``.  With ``--evaluate`` the
fourth column of the point file is read as ground truth (0 = outside,
1 = inside, 2 = on boundary, -1 = unknown) and an evaluation report is
printed after the classifications.

Examples:
    # Classify points, fallback sequence from a custom seed
    python -m polyinside part.stl probes.xyz --seed 42

    # Compare against labelled points and write an HTML report
    python -m polyinside part.stl labelled.csv --evaluate --html report.html
"""

import argparse
import logging
import sys
from pathlib import Path

from polyinside.config import load_config
from polyinside.containment import PointInsideTester
from polyinside.evaluation import CONTAINMENT_LABELS, Evaluation, classification_index
from polyinside.geometry_checks import validate_closed_surface
from polyinside.io import read_point_set, read_stl
from polyinside.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m polyinside',
        description='Classify points as inside, outside or on a closed triangle surface',
    )
    parser.add_argument('mesh', help='closed surface as binary or ASCII STL')
    parser.add_argument('points', help='point file, "x y z [label]" per line')
    parser.add_argument('--config', metavar='FILE', help='YAML containment config')
    parser.add_argument('--seed', type=int, help='fallback sampler seed')
    parser.add_argument('--max-fallback', type=int, metavar='N',
                        help='give up (inconclusive) after N fallback probes')
    parser.add_argument('--tolerance', type=float, help='degeneracy tolerance')
    parser.add_argument('--validate', action='store_true',
                        help='check that the mesh is closed and consistently oriented')
    parser.add_argument('--evaluate', action='store_true',
                        help='compare against labels in the point file')
    parser.add_argument('--html', metavar='FILE', help='write evaluation report as HTML')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='more logging (repeat for debug output)')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logger = setup_logging(level)

    overrides = {}
    if args.seed is not None:
        overrides['seed'] = args.seed
    if args.max_fallback is not None:
        overrides['max_fallback_probes'] = args.max_fallback
    if args.tolerance is not None:
        overrides['tolerance'] = args.tolerance

    try:
        config = load_config(args.config, **overrides)
        mesh = read_stl(args.mesh)
        points, labels = read_point_set(args.points)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not mesh[3]:
        print(f"Error: no triangles in {args.mesh}", file=sys.stderr)
        return 1
    if args.validate and not validate_closed_surface(mesh):
        print(f"Error: {args.mesh} is not a closed, consistently oriented surface",
              file=sys.stderr)
        return 1

    tester = PointInsideTester(mesh, config)
    logger.info('classifying %d points against %d triangles', len(points), len(mesh[3]))
    results = tester.classify_points(points)
    for p, result in zip(points, results):
        print(f"{p[0]:.9g} {p[1]:.9g} {p[2]:.9g} {result}")

    if args.evaluate or args.html:
        if (labels == -1).all():
            print(f"Error: {args.points} has no labels to evaluate against", file=sys.stderr)
            return 1
        try:
            evaluation = Evaluation(CONTAINMENT_LABELS, labels.tolist(),
                                    [classification_index(r) for r in results])
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(evaluation)
        if args.html:
            Path(args.html).write_text(evaluation.to_html(), encoding='utf-8')
    return 0


if __name__ == '__main__':
    sys.exit(main())
