"""Entry point for running gcalagent as a module.

Usage:
    python -m gcalagent --url https://www.instagram.com/p/<id>/
    python -m gcalagent --text "Team standup tomorrow at 10am in Room B"
    python -m gcalagent --image flyer.png --ics-out event.ics
    python -m gcalagent set-key
"""

import argparse
import getpass
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

from gcalagent.config.settings import AppConfig
from gcalagent.pipeline import Completed, EventPipeline
from gcalagent.storage.key_manager import save_api_key


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcalagent",
        description="Turn an Instagram post, text or image into calendar links.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--url", help="Instagram post, reel or TV URL")
    source.add_argument("--text", help="free-form event text")
    source.add_argument("--image", type=Path, help="path to a flyer or screenshot")
    parser.add_argument("--ics-out", type=Path, help="write the Apple .ics body here")
    parser.add_argument(
        "command", nargs="?", choices=["set-key"], help="store a Gemini API key"
    )
    return parser


def _set_key() -> int:
    api_key = getpass.getpass("Gemini API key: ")
    if not save_api_key(api_key):
        print("Failed to save API key.", file=sys.stderr)
        return 1
    print("API key saved.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == "set-key":
        return _set_key()

    if not (args.url or args.text or args.image):
        parser.print_usage(sys.stderr)
        print("gcalagent: one of --url, --text or --image is required", file=sys.stderr)
        return 2

    pipeline = EventPipeline(AppConfig.from_env())

    if args.image:
        try:
            image_bytes = args.image.read_bytes()
        except OSError as e:
            print(f"gcalagent: cannot read {args.image}: {e}", file=sys.stderr)
            return 2
        mime_type, _ = mimetypes.guess_type(str(args.image))
        result = pipeline.from_image(image_bytes, mime_type)
    elif args.url:
        result = pipeline.from_url(args.url)
    else:
        result = pipeline.from_text(args.text)

    if not isinstance(result, Completed):
        print(f"Error ({result.kind.value}): {result.message}", file=sys.stderr)
        return 1

    event = result.event
    print(f"Title:    {event.title}")
    print(f"Start:    {event.start.isoformat()}")
    print(f"End:      {event.end.isoformat()}")
    if event.location:
        print(f"Location: {event.location}")
    print()
    print(f"Google:   {result.artifacts.google}")
    print(f"Outlook:  {result.artifacts.outlook}")

    if args.ics_out:
        args.ics_out.write_bytes(result.artifacts.apple.encode("utf-8"))
        print(f"Apple:    written to {args.ics_out}")
    else:
        print("Apple:")
        sys.stdout.write(result.artifacts.apple)
    return 0


if __name__ == "__main__":
    sys.exit(main())
