# ABOUTME: CLI entry point for html-grabber.
# ABOUTME: Supports 'grab', 'grab-file' and 'serve' commands.

import argparse
import asyncio
import sys
from pathlib import Path

import structlog
import uvicorn

from html_grabber.config import get_settings
from html_grabber.errors import GrabError
from html_grabber.logs import configure_logging
from html_grabber.models import GrabbedPage

log = structlog.get_logger()


def _grabber(args: argparse.Namespace):
    from html_grabber.services.grabber import HTMLGrabber

    overrides = {}
    if args.pretty:
        overrides["pretty"] = True
    if args.debug:
        overrides["debug"] = True
    return HTMLGrabber(**overrides)


def _print_page(page: GrabbedPage) -> None:
    print(page.model_dump_json(indent=2, by_alias=True))


def cmd_grab(args: argparse.Namespace) -> None:
    """Grab a remote page and print it as JSON."""
    grabber = _grabber(args)
    _print_page(asyncio.run(grabber.grab_url(args.url)))


def cmd_grab_file(args: argparse.Namespace) -> None:
    """Grab a local HTML file and print it as JSON."""
    grabber = _grabber(args)
    content = Path(args.path).read_text(encoding="utf-8")
    _print_page(asyncio.run(grabber.grab(content, args.url)))


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the web API server."""
    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port
    log.info("starting_server", host=host, port=port)
    uvicorn.run("html_grabber.web.app:app", host=host, port=port, reload=args.reload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="html-grabber", description="Extract readable content from web pages"
    )
    subparsers = parser.add_subparsers(dest="command")

    # grab
    grab_parser = subparsers.add_parser("grab", help="Grab a remote page")
    grab_parser.add_argument("url", type=str)

    # grab-file
    file_parser = subparsers.add_parser("grab-file", help="Grab a local HTML file")
    file_parser.add_argument("path", type=str)
    file_parser.add_argument("--url", type=str, default=None, help="Address of the page")

    for sub in (grab_parser, file_parser):
        sub.add_argument("--pretty", action="store_true")
        sub.add_argument("--debug", action="store_true")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start web API")
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging("DEBUG" if getattr(args, "debug", False) else settings.log_level)

    commands = {"grab": cmd_grab, "grab-file": cmd_grab_file, "serve": cmd_serve}
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args)
    except GrabError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
