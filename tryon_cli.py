"""
Command-line client for the hosted IDM-VTON try-on model.

Usage examples:

Try-on:
    python tryon_cli.py \
        --person https://example.com/person.jpg \
        --garment https://example.com/garment.jpg \
        --output result.png

Model status:
    python tryon_cli.py --status
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from services.session_manager import SessionManager
from services.tryon_service import TryOnService


def call_tryon(service: TryOnService, person_url: str, garment_url: str, output_path: Path) -> int:
    result = asyncio.run(service.perform_tryon(person_url, garment_url))
    if not result.success:
        print(f"Try-on failed after {result.processing_time}ms: {result.error}", file=sys.stderr)
        return 1

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.image_buffer)
    print(f"Saved generated image to {output_path} ({result.processing_time}ms)")
    return 0


def call_status(service: TryOnService) -> int:
    status = asyncio.run(service.check_model_status())
    print(json.dumps(status.to_dict()))
    return 0 if status.available else 1


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a virtual try-on against the hosted IDM-VTON Space.")
    parser.add_argument(
        "--status",
        action="store_true",
        help="Only check whether the model is reachable.",
    )
    parser.add_argument(
        "--person",
        type=str,
        help="Public URL of the person image.",
    )
    parser.add_argument(
        "--garment",
        type=str,
        help="Public URL of the garment image.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("tryon_result.png"),
        help="Where to write the generated image.",
    )
    args = parser.parse_args(argv)
    if not args.status and not (args.person and args.garment):
        parser.error("--person and --garment are required unless --status is given")
    return args


def main(argv: list[str] | None = None, service: TryOnService | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)
    service = service or TryOnService(SessionManager())

    if args.status:
        return call_status(service)
    return call_tryon(service, args.person, args.garment, args.output)


if __name__ == "__main__":
    sys.exit(main())
