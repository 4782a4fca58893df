"""Command-line argument parsing for ws3270.

Defines CLI flags and applies precedence: CLI flag > env var > .env > default.
Called by main.py before Config instantiation; sets os.environ for any
explicitly provided flags so Config reads the overridden values.
"""

import argparse
import os
from pathlib import Path

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _positive_float(value: str) -> float:
    """Argparse type for positive floats."""
    result = float(value)
    if result <= 0:
        msg = f"must be positive, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return result


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments and return namespace.

    Args:
        argv: Argument list (defaults to sys.argv[1:]). Pass explicitly for testing.
    """
    parser = argparse.ArgumentParser(
        prog="ws3270",
        description="Display-session engine for a detachable 3270 terminal",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="show version and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="enable debug logging (env: WS3270_LOG_LEVEL=DEBUG)",
    )
    parser.add_argument(
        "--log-level",
        choices=_LOG_LEVELS,
        metavar="LEVEL",
        help="logging level: DEBUG, INFO, WARNING, ERROR (env: WS3270_LOG_LEVEL)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        metavar="DIR",
        help="config directory (default: ~/.ws3270, env: WS3270_DIR)",
    )
    parser.add_argument(
        "--url",
        metavar="URL",
        help="host websocket endpoint (default: ws://localhost:8080/api/ws, env: WS3270_URL)",
    )
    parser.add_argument(
        "--trace-file",
        type=Path,
        metavar="PATH",
        help="record inbound messages to (run) or read them from (replay) this JSONL file "
        "(env: WS3270_TRACE_FILE)",
    )
    parser.add_argument(
        "--heartbeat",
        type=_positive_float,
        metavar="SEC",
        help="websocket heartbeat interval in seconds (default: 20, env: WS3270_HEARTBEAT)",
    )

    parser.add_argument(
        "command",
        nargs="?",
        choices=["run", "replay"],
        default="run",
        help="run: connect to the host (default); replay: render a recorded trace",
    )

    return parser.parse_args(argv)


# Mapping: argparse dest → environment variable name
_FLAG_TO_ENV: list[tuple[str, str]] = [
    ("config_dir", "WS3270_DIR"),
    ("url", "WS3270_URL"),
    ("trace_file", "WS3270_TRACE_FILE"),
    ("heartbeat", "WS3270_HEARTBEAT"),
]


def apply_args_to_env(args: argparse.Namespace) -> None:
    """Set environment variables from explicitly provided CLI flags.

    Call BEFORE Config instantiation to ensure CLI flags take precedence.
    Only sets env vars for flags that were explicitly provided (not None).
    """
    # --verbose always wins over --log-level
    if args.verbose:
        os.environ["WS3270_LOG_LEVEL"] = "DEBUG"
    elif args.log_level is not None:
        os.environ["WS3270_LOG_LEVEL"] = args.log_level.upper()

    for attr, env_var in _FLAG_TO_ENV:
        value = getattr(args, attr)
        if value is None:
            continue
        if isinstance(value, Path):
            os.environ[env_var] = str(value.expanduser().resolve())
        else:
            os.environ[env_var] = str(value)
