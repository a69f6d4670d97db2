#!/usr/bin/env python3
"""
CLI interface for tracing tools on a photo of a sheet of paper.

Usage:
    python -m tool_detection -i photo.jpg --seed 420,310
    python -m tool_detection -i photo.jpg --seed 420,310 --seed 800,512 --paper A4 --clearance 1.5 -o outlines.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import cv2

from ai.provider import ProviderError
from common import config
from common.bounds import Bounds
from common.geometry import Point
from paper_detection import (
    PaperDetector,
    PaperVisualizer,
    calculate_scale,
    calculate_scale_bidirectional,
    get_paper_size,
    outline_to_mm,
)

from .tracer import ToolTracer, make_tool


def parse_point(value: str) -> Point:
    """Parse "X,Y" into a Point"""
    try:
        x, y = value.split(',')
        return Point(float(x), float(y))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected X,Y coordinates, got: {value}")


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='Trace tool outlines on a photo of a sheet of paper',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

  # Trace one tool on a Letter sheet, print JSON to stdout
  python -m tool_detection -i photo.jpg --seed 420,310

  # Two tools on A4, 1.5 mm clearance, with SAM and an overlay image
  python -m tool_detection -i photo.jpg --seed 420,310 --seed 800,512 \\
      --paper A4 --clearance 1.5 --sam mobile_sam.pt -o tools.json --visualize overlay.png

Processing:
  - Paper: largest bright region (or SAM, from --paper-click)
  - Tools: SAM at each seed if --sam is given, colour flood fill otherwise
  - Outlines are converted to mm from the paper size
        """
    )

    parser.add_argument('-i', '--input', required=True, help='Input photo')
    parser.add_argument(
        '--seed', type=parse_point, action='append', default=[],
        help='Click on a tool as X,Y pixel coordinates (repeatable)'
    )
    parser.add_argument(
        '--paper', default=config.DEFAULT_PAPER,
        help=f'Paper size preset (default: {config.DEFAULT_PAPER})'
    )
    parser.add_argument('--paper-click', type=parse_point, help='Click on the paper for AI detection (X,Y)')
    parser.add_argument('--clearance', type=float, default=0.0, help='Clearance around tools in mm (default: 0)')
    parser.add_argument('--threshold', type=float, default=30.0, help='Flood fill colour threshold (default: 30)')
    parser.add_argument('--sam', help='SAM model to use for segmentation (e.g. mobile_sam.pt)')
    parser.add_argument('-o', '--output', help='Output JSON file (default: stdout)')
    parser.add_argument('--visualize', help='Write an overlay image with paper and outlines')
    parser.add_argument('--log-level', default=config.LOG_LEVEL, help='Logging level')

    return parser.parse_args(argv)


def _points_json(points):
    return [[round(p[0], 4), round(p[1], 4)] for p in points]


def main(argv=None):
    """Main CLI function"""
    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )

    try:
        paper = get_paper_size(args.paper)
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not Path(args.input).exists():
        print(f"❌ Error: Input file not found: {args.input}", file=sys.stderr)
        sys.exit(1)

    image = cv2.imread(args.input)
    if image is None:
        print(f"❌ Error: Failed to load image: {args.input}", file=sys.stderr)
        sys.exit(1)

    provider = None
    if args.sam:
        from ai.sam import SamProvider

        provider = SamProvider(args.sam)
        try:
            provider.initialize()
        except ProviderError as e:
            print(f"⚠️  {e}, continuing without AI segmentation", file=sys.stderr)
            provider = None

    try:
        detector = PaperDetector()
        corners = detector.detect_paper(image, click=args.paper_click, provider=provider)

        tracer = ToolTracer(color_threshold=args.threshold)
        tools = []
        sources = []
        for seed in args.seed:
            result = tracer.trace_with_ai(image, seed, provider)
            tools.append(make_tool(result))
            sources.append(result.source)
    finally:
        if provider is not None:
            provider.dispose()

    output = {
        'image': str(args.input),
        'paper': {'name': paper.name, 'width_mm': paper.width_mm, 'height_mm': paper.height_mm},
        'corners': _points_json(corners) if corners else None,
        'scale': None,
        'tools': [],
    }

    paper_bounds = Bounds.from_points(corners) if corners else None

    scale = None
    if corners:
        scale = calculate_scale(corners, paper)
        bidirectional = calculate_scale_bidirectional(corners, paper)
        output['scale'] = {
            'px_per_mm': scale,
            'px_per_mm_x': bidirectional.scale_x,
            'px_per_mm_y': bidirectional.scale_y,
        }
    else:
        print("⚠️  Paper was not detected, outlines are reported in pixels only", file=sys.stderr)

    for tool, source in zip(tools, sources):
        entry = {
            'id': tool.id,
            'source': source,
            'confidence': tool.confidence,
            'outline_px': _points_json(tool.outline),
        }
        if tool.outline:
            extent = Bounds.from_points(tool.outline)
            entry['bounds_px'] = [round(v, 4) for v in extent.as_tuple()]
            if paper_bounds is not None:
                entry['on_paper'] = extent.is_inside(paper_bounds)
                if not entry['on_paper']:
                    print(f"⚠️  Tool {tool.id} extends beyond the paper", file=sys.stderr)
        if scale is not None and len(tool.outline) >= 3:
            entry['outline_mm'] = _points_json(outline_to_mm(tool.outline, scale, args.clearance))
        output['tools'].append(entry)

    document = json.dumps(output, indent=2)
    if args.output:
        Path(args.output).write_text(document)
        print(f"✅ Outlines saved: {args.output}", file=sys.stderr)
    else:
        print(document)

    if args.visualize:
        visualizer = PaperVisualizer()
        overlay = visualizer.visualize(image, corners)
        overlay = visualizer.draw_outlines(overlay, [tool.outline for tool in tools])
        cv2.imwrite(args.visualize, overlay)
        print(f"✅ Overlay saved: {args.visualize}", file=sys.stderr)


if __name__ == '__main__':
    main()
