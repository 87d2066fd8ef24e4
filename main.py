"""Falastin Games — dev launcher. Starts the API server."""

import argparse
import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = int(os.getenv("BACKEND_PORT", "13013"))


def main():
    parser = argparse.ArgumentParser(description="Falastin Games dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--log-level", default="info",
                        choices=["debug", "info", "warning", "error"],
                        help="Log level for the app and the server")
    parser.add_argument("--no-reload", action="store_true",
                        help="Disable auto-reload")
    args = parser.parse_args()

    # The app reads DATA_DIR at import, including in the reloader's worker.
    if args.data_dir:
        os.environ["DATA_DIR"] = str(args.data_dir.resolve())

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    uvicorn.run(
        "backend.app:app",
        host=HOST,
        port=BACKEND_PORT,
        reload=not args.no_reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
