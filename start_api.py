#!/usr/bin/env python3
"""
Startup script for the Lightning Talks API server.

Usage:
    python start_api.py                          # Development mode with auto-reload
    python start_api.py --prod                   # Production mode
    python start_api.py --state-path ./state.json
"""

import argparse
import os

import uvicorn

RELOAD_DIRS = ["api", "sync", "views", "parsing", "ingest"]


def build_config(args: argparse.Namespace) -> dict:
    """Return keyword arguments for ``uvicorn.run``."""
    config = {
        "app": "api.main:app",
        "host": args.host,
        "port": args.port,
        "log_level": "info" if args.prod else "debug",
        "loop": "asyncio",
        "http": "h11",
    }
    if not args.prod and not args.no_reload:
        config.update({"reload": True, "reload_dirs": RELOAD_DIRS, "reload_delay": 1.0})
    return config


def main():
    """Start the FastAPI server with configurable options."""
    os.environ.setdefault("WATCHFILES_FORCE_POLLING", "1")
    parser = argparse.ArgumentParser(description="Start Lightning Talks API")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8001, help="Port to bind to (default: 8001)")
    parser.add_argument("--prod", action="store_true", help="Run without auto-reload and with info logging")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload in development mode")
    parser.add_argument("--state-path", help="File holding hidden events, profile and API key")
    parser.add_argument("--debug", action="store_true", help="Log store notifications and fetch summaries")
    args = parser.parse_args()

    # Read by the service modules at import time inside the server process.
    if args.state_path:
        os.environ["LOCAL_STATE_PATH"] = args.state_path
    if args.debug:
        os.environ["LIGHTNING_DEBUG"] = "1"

    mode = "PRODUCTION" if args.prod else "DEVELOPMENT"
    print(f"⚡ Starting Lightning Talks API in {mode} mode")
    print(f"   📍 http://{args.host}:{args.port}")
    print(f"   📚 API docs: http://{args.host}:{args.port}/docs")

    uvicorn.run(**build_config(args))


if __name__ == "__main__":
    main()
