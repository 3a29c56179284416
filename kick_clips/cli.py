from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .config import DEFAULT_CLIENT_HINTS, DEFAULT_PAGE_URL, REPLAY_MODES, ReplayConfig, SessionConfig
from .client import KickClipsClient
from .endpoints import API_ENDPOINTS
from .exceptions import ConfigurationError, KickClipsError
from .hooks import ClipsHooks
from .storage import write_json

logger = logging.getLogger("kick_clips.cli")

_CLIP_PARAMS = API_ENDPOINTS["clips"]["params"]


def _tool_version() -> str:
    try:
        return version("kick-clips-cli")
    except PackageNotFoundError:
        return "0.0.0"


def _emit(payload: dict, output_format: str) -> None:
    if output_format == "ndjson":
        print(json.dumps(payload, separators=(",", ":")))
        return
    print(json.dumps(payload, indent=2))


def configure_logging(debug: bool, log_dir: str | None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if debug and log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = Path(log_dir) / f"kick_clips_{date.today().isoformat()}.log"
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def _parse_client_hints(values: list[str] | None) -> dict[str, str]:
    hints = dict(DEFAULT_CLIENT_HINTS)
    for item in values or []:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ConfigurationError(f"Client hint must look like NAME=VALUE, got '{item}'")
        hints[name.strip().lower()] = value
    return hints


class _CliHooks(ClipsHooks):
    def on_page(self, request_number, requests_planned, received, total, next_cursor) -> None:
        logger.info("Request %d of up to %d: %d clips (total %d)", request_number, requests_planned, received, total)
        if next_cursor:
            logger.debug("Next cursor: %s", next_cursor)

    def on_complete(self, total, trimmed) -> None:
        logger.info("Fetched %d clips%s", total, " (trimmed to limit)" if trimmed else "")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kick-clips",
        description=(
            "Fetch kick.com clips by capturing the page's own API request in a real "
            "browser and replaying it with a pagination cursor."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_tool_version()}")
    parser.add_argument("--format", choices=["json", "ndjson"], default="json")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-dir", default=str(Path("tmp") / "logs"))
    subparsers = parser.add_subparsers(dest="command", required=True)

    clips_parser = subparsers.add_parser("clips", help="Get clips (e.g. top daily clips)")
    clips_parser.add_argument("--sort", default="view", choices=list(_CLIP_PARAMS["sort"]))
    clips_parser.add_argument("--time", dest="time_range", default="day", choices=list(_CLIP_PARAMS["time"]))
    clips_parser.add_argument("--limit", type=int, default=20)
    clips_parser.add_argument("--mode", default="in-page", choices=list(REPLAY_MODES))
    clips_parser.add_argument("--output", default=None, help="Write clips JSON to this file")
    clips_parser.add_argument("--browser", default="chrome", choices=["chrome", "edge"])
    clips_parser.add_argument("--browser-path", default=None)
    clips_parser.add_argument("--chrome-port", type=int, default=9222)
    clips_parser.add_argument("--user-data-dir", default=None)
    clips_parser.add_argument("--headful", action="store_true", help="Show the browser window")
    clips_parser.add_argument("--page-url", default=DEFAULT_PAGE_URL)
    clips_parser.add_argument("--snapshot-dir", default=None, help="Save last_response.html / error_response.html here")
    clips_parser.add_argument("--capture-timeout", type=float, default=15.0)
    clips_parser.add_argument("--replay-timeout", type=float, default=20.0)
    clips_parser.add_argument(
        "--client-hint",
        action="append",
        default=None,
        help="Repeatable NAME=VALUE client-hint header for --mode http",
    )
    return parser


def _run_clips(args: argparse.Namespace) -> None:
    session_config = SessionConfig(
        browser=args.browser,
        browser_path=args.browser_path,
        chrome_port=args.chrome_port,
        user_data_dir=args.user_data_dir,
        headless=not args.headful,
        page_url=args.page_url,
        snapshot_dir=args.snapshot_dir,
        capture_timeout_seconds=args.capture_timeout,
    )
    replay_config = ReplayConfig(
        mode=args.mode,
        timeout_seconds=args.replay_timeout,
        user_agent=session_config.user_agent,
        accept_language=session_config.accept_language,
        client_hints=_parse_client_hints(args.client_hint),
    )
    hooks = _CliHooks()

    with KickClipsClient(session_config, replay_config, hooks=hooks) as client:
        result = client.fetch_clips(args.sort, args.time_range, args.limit)

    if args.output:
        path = write_json(args.output, result.to_dict())
        _emit({"count": result.count, "nextCursor": result.next_cursor, "output": str(path)}, args.format)
        return
    _emit({"count": result.count, **result.to_dict()}, args.format)


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(args.debug, args.log_dir)

    try:
        if args.command == "clips":
            _run_clips(args)
            return
    except KickClipsError as exc:
        logger.error("Error: %s", exc)
        raise SystemExit(1) from exc

    parser.error("Unknown command")


if __name__ == "__main__":
    main()
