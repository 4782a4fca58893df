"""Application entry point — CLI dispatcher and session bootstrap.

``main()`` parses CLI flags, applies them to the environment, configures
logging and then runs one of:
  - ``run``: connect to the host and keep the session alive until interrupted.
  - ``replay``: rebuild the screen from a recorded trace and print it.
"""

import asyncio
import logging
import os
import sys

import structlog

from . import __version__
from .cli import apply_args_to_env, parse_args


def _short_name_processor(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Strip the 'ws3270.' prefix, cap at 20 chars."""
    name = event_dict.get("_record", {}).get("name", "")
    if not name:
        name = event_dict.get("logger_name", "")
    if name.startswith("ws3270."):
        name = name[len("ws3270.") :]
    event_dict["short_name"] = name[:20]
    return event_dict


def setup_logging(log_level: str) -> None:
    """Configure structured, colored logging for interactive CLI use."""
    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _short_name_processor,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging for third-party libs
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=True, pad_event=40),
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            ],
        )
    )
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("ws3270").setLevel(numeric_level)
    for name in ("aiohttp", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)


async def _run_session() -> None:
    from .config import config
    from .connection import SessionConnection, WebSocketTransport
    from .dispatcher import IndicationDispatcher
    from .presenter import LogPresenter
    from .trace import TraceRecorder

    logger = structlog.get_logger()
    logger.info("Host endpoint: %s", config.url)

    presenter = LogPresenter()
    dispatcher = IndicationDispatcher.for_presenter(presenter)
    recorder = None
    if config.trace_file is not None:
        logger.info("Recording inbound messages to %s", config.trace_file)
        recorder = TraceRecorder(config.trace_file)

    connection = SessionConnection(
        WebSocketTransport(config.url, heartbeat=config.heartbeat),
        dispatcher,
        presenter,
        recorder=recorder,
    )
    await connection.run()


def run_session() -> None:
    """Run the host session until interrupted."""
    try:
        asyncio.run(_run_session())
    except KeyboardInterrupt:
        structlog.get_logger().info("Interrupted, shutting down")


def replay() -> int:
    """Replay the configured trace file and print the resulting screen."""
    from .config import config
    from .dispatcher import IndicationDispatcher
    from .presenter import NullPresenter
    from .trace import replay_trace

    if config.trace_file is None:
        print("Error: replay needs --trace-file (or WS3270_TRACE_FILE)", file=sys.stderr)
        return 2
    dispatcher = IndicationDispatcher.for_presenter(NullPresenter())
    try:
        applied = replay_trace(config.trace_file, dispatcher)
    except OSError as e:
        print(f"Error: cannot read {config.trace_file}: {e}", file=sys.stderr)
        return 1
    structlog.get_logger().info("Replayed %d indications", applied)
    for line in dispatcher.buffer.display:
        print(line)
    print(dispatcher.status.render_line())
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    if args.version:
        print(f"ws3270 {__version__}")
        return
    apply_args_to_env(args)

    log_level = os.environ.get("WS3270_LOG_LEVEL", "INFO").upper()
    setup_logging(log_level)

    try:
        from .config import config  # noqa: F401
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "replay":
        sys.exit(replay())
    run_session()


if __name__ == "__main__":
    main()
