"""Entry point for the Agora server."""

import logging
import sys

import structlog

from agora import config as config_module

# Request lines are logged by RequestLoggingMiddleware; SQL echo is never wanted
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def configure_logging(*, json_output: bool | None = None) -> None:
    """Route structlog and stdlib logging through one processor chain.

    Console rendering is used on a TTY and JSON lines otherwise, unless
    ``json_output`` forces one of them.
    """
    level = getattr(logging, config_module.settings.log_level)
    if json_output is None:
        json_output = not sys.stderr.isatty()

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Serve the API, dashboard and admin panel with uvicorn.

    Host and port fall back to ``AGORA_SERVER_HOST`` / ``AGORA_SERVER_PORT``.
    """
    import uvicorn

    from agora import __version__
    from agora.api.app import create_app

    configure_logging()
    log = structlog.get_logger()

    settings = config_module.settings
    host = host or settings.server_host
    port = port or settings.server_port

    log.info(
        "server_starting",
        version=__version__,
        name=settings.server_name,
        host=host,
        port=port,
        db_path=str(settings.db_path),
    )

    # log_config=None keeps uvicorn on the handlers configured above
    uvicorn.run(create_app(), host=host, port=port, log_config=None)


def main() -> None:
    run_server()


if __name__ == "__main__":
    main()
