"""AniGame launcher. Starts the API server with uvicorn."""

import argparse
import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="AniGame API server")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Saved-game directory (default: ./data)")
    parser.add_argument("--catalog-file", type=Path, default=None,
                        help="Serve anime from a JSON file instead of the HTTP backend")
    parser.add_argument("--reload", action="store_true",
                        help="Restart the server when source files change")
    parser.add_argument("--log-level", default="info",
                        choices=["debug", "info", "warning", "error"])
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # The app reads its settings from the environment when uvicorn imports it
    if args.data_dir:
        os.environ["DATA_DIR"] = str(args.data_dir.resolve())
    if args.catalog_file:
        os.environ["ANIGAME_CATALOG_FILE"] = str(args.catalog_file.resolve())

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    uvicorn.run(
        "backend.app:app",
        host=HOST,
        port=int(BACKEND_PORT),
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
