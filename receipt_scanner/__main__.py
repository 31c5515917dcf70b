#!/usr/bin/env python3
"""
CLI interface for the receipt scanner.

Usage:
    python -m receipt_scanner -i receipt.jpg
    python -m receipt_scanner -i receipt.jpg -o flat.png --overlay detected.jpg
    python -m receipt_scanner -i a.jpg -i b.jpg -d scanned/ --workers 4
"""

import argparse
import logging
import sys
from pathlib import Path

from .codec import load_image, save_image
from .config import ScannerConfig
from .errors import ScannerError
from .pipeline import ScanPipeline, output_paths, scan_file, scan_files
from .visualizer import ScanVisualizer


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog='receipt_scanner',
        description='Detect a receipt in a photo and flatten it to a top-down image',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

  # Scan one photo (writes receipt_scanned.jpg next to it)
  python -m receipt_scanner -i receipt.jpg

  # Scan and save the detected outline for inspection
  python -m receipt_scanner -i receipt.jpg -o flat.png --overlay outline.jpg

  # Scan a batch into a directory
  python -m receipt_scanner -i a.jpg -i b.jpg -d scanned/

When no receipt outline is found the original image is written instead.
Parameters can also be set with RECEIPT_SCANNER_* variables or a .env file.
        """
    )

    parser.add_argument(
        '-i', '--input',
        action='append',
        required=True,
        help='Input image (repeatable)'
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        '-o', '--output',
        help='Output file for a single input (default: <input>_scanned.<ext>)'
    )
    output.add_argument(
        '-d', '--output-dir',
        help='Output directory, files keep their input names (repeated names get _1, _2, ...)'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Time budget per image in seconds'
    )

    parser.add_argument(
        '--overlay',
        help='Also save the input with the detected outline drawn (single input only)'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=4,
        help='Parallel workers with --output-dir (default: 4)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging'
    )

    args = parser.parse_args(argv)

    if len(args.input) > 1 and (args.output or args.overlay):
        parser.error('--output and --overlay accept a single --input')
    if args.output_dir and args.overlay:
        parser.error('--overlay cannot be combined with --output-dir')

    return args


def default_output_path(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}_scanned{input_path.suffix}")


def main(argv=None) -> int:
    """Main CLI function"""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    try:
        config = ScannerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid configuration: {e}")
        return 1

    pipeline = ScanPipeline(config)
    inputs = [Path(p) for p in args.input]

    missing = [p for p in inputs if not p.exists()]
    if missing:
        for path in missing:
            print(f"Error: input file not found: {path}")
        return 1

    if args.output_dir:
        results = scan_files(inputs, args.output_dir, max_workers=args.workers,
                             timeout=args.timeout, pipeline=pipeline)
        targets = output_paths(dict.fromkeys(inputs), Path(args.output_dir))
        failed = 0
        for path, target in targets.items():
            result = results[path]
            if isinstance(result, ScannerError):
                print(f"✗ {path}: {result}")
                failed += 1
            elif result.success:
                print(f"✓ {path}: receipt rectified -> {target}")
            else:
                print(f"- {path}: no receipt found ({result.reason.value}), original saved to {target}")
        return 1 if failed else 0

    failed = 0
    for path in inputs:
        output_path = Path(args.output) if args.output else default_output_path(path)
        try:
            result = scan_file(path, output_path, timeout=args.timeout, pipeline=pipeline)
        except ScannerError as e:
            print(f"✗ {path.name}: {e}")
            failed += 1
            continue

        if result.success:
            print(f"✓ {path.name}: receipt rectified -> {output_path}")
        else:
            print(f"- {path.name}: no receipt found ({result.reason.value}), original saved to {output_path}")

        if args.overlay and result.corners is not None:
            try:
                overlay = ScanVisualizer().visualize(load_image(path), result.corners)
                save_image(args.overlay, overlay)
            except ScannerError as e:
                print(f"✗ overlay: {e}")
                failed += 1

    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
