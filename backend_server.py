#!/usr/bin/env python3
"""
Standalone server entry point for the ledger reports API.
"""
import argparse
import os

import uvicorn

from ledger_recon.config import get_settings


if __name__ == "__main__":
    settings = get_settings()

    parser = argparse.ArgumentParser()
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to run the server on")
    parser.add_argument("--ledger-file", default=None, help="Ledger JSON file to serve")
    args = parser.parse_args()

    if args.ledger_file:
        os.environ["LEDGER_FILE"] = os.path.abspath(args.ledger_file)
        get_settings.cache_clear()

    from ledger_recon.main import app

    print(f"Starting ledger reports API on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")
