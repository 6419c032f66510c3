#!/usr/bin/env python
"""Serve the API with hypercorn.

Usage:
    python scripts/serve.py                     # 0.0.0.0:5000
    python scripts/serve.py --bind 127.0.0.1:8000
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from hypercorn.asyncio import serve
from hypercorn.config import Config

from talkrag.main import app


def main():
    parser = argparse.ArgumentParser(description="Serve the talk QA API")
    parser.add_argument("--bind", default="0.0.0.0:5000", help="host:port to bind")
    args = parser.parse_args()

    hypercorn_config = Config()
    hypercorn_config.bind = [args.bind]
    hypercorn_config.accesslog = "-"

    asyncio.run(serve(app, hypercorn_config))


if __name__ == "__main__":
    main()
