#!/usr/bin/env python3
"""Run the Piano Practice Timer web app."""

import argparse

from app import create_app


def main():
    parser = argparse.ArgumentParser(description="Piano Practice Timer")
    parser.add_argument("--host", default="127.0.0.1", help="Address to bind")
    parser.add_argument("--port", type=int, default=5000, help="Port to listen on")
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    args = parser.parse_args()

    app = create_app()
    # The reloader would start a second timer process
    app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)


if __name__ == "__main__":
    main()
