"""Command-line launcher for the snake server."""

from __future__ import annotations

import argparse
import logging

from battlesnake_core.config import ServerConfig

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="battlesnake-core",
        description="Battlesnake game-session server.",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands.")

    # --- serve ---
    serve_p = sub.add_parser("serve", help="Run the HTTP server.")
    serve_p.add_argument(
        "--config", type=str, default=None,
        help="Path to a JSON config file (flags override its values).",
    )
    serve_p.add_argument("--host", type=str, default=None)
    serve_p.add_argument("--port", type=int, default=None)
    serve_p.add_argument("--log-level", type=str, default=None)
    serve_p.add_argument(
        "--shout-policy", type=str, default=None,
        choices=["truncate", "reject"],
    )
    serve_p.add_argument("--session-idle-timeout", type=float, default=None)
    serve_p.add_argument("--latency-margin-ms", type=int, default=None)
    serve_p.add_argument("--author", type=str, default=None)
    serve_p.add_argument("--color", type=str, default=None)
    serve_p.add_argument("--head", type=str, default=None)

    # --- heads ---
    sub.add_parser("heads", help="List the head variants the engine accepts.")

    return parser


def _resolve_config(args: argparse.Namespace) -> ServerConfig:
    config = (
        ServerConfig.load(args.config) if args.config else ServerConfig()
    )

    overrides: dict = {}
    flag_map = {
        "host": "host",
        "port": "port",
        "log_level": "log_level",
        "shout_policy": "shout_policy",
        "session_idle_timeout": "session_idle_timeout_s",
        "latency_margin_ms": "latency_margin_ms",
    }
    for cli_name, cfg_name in flag_map.items():
        val = getattr(args, cli_name, None)
        if val is not None:
            overrides[cfg_name] = val

    appearance = {
        name: getattr(args, name)
        for name in ("author", "color", "head")
        if getattr(args, name, None) is not None
    }

    if overrides or appearance:
        d = config.to_dict()
        d.update(overrides)
        d["appearance"] = {**d["appearance"], **appearance}
        config = ServerConfig.from_dict(d)
    return config


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from battlesnake_core.server.app import create_app

    config = _resolve_config(args)
    logging.getLogger().setLevel(config.log_level.upper())
    logger.info("Serving on %s:%d", config.host, config.port)
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )
    return 0


def _run_heads(args: argparse.Namespace) -> int:
    from battlesnake_core.customization import head_names

    for name in head_names():
        print(name)  # noqa: T201
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``battlesnake-core`` CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    handlers = {
        "serve": _run_serve,
        "heads": _run_heads,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
