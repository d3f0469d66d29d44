"""Entry point for serving the Tag Tree Explorer API.

Usage:
    python run_server.py --port 8000 [--host 127.0.0.1] [--log-level info]
"""

import argparse


def main() -> None:
    parser = argparse.ArgumentParser(description="Tag Tree Explorer Backend")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Interface to bind to")
    parser.add_argument("--log-level", type=str, default="info", help="uvicorn log level")
    args = parser.parse_args()

    import uvicorn
    from tagtree.main import app

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
