#!/usr/bin/env python3
"""
Upload a finished download to object storage and print a download link.

Stands in for a download job handing its output to the storage gateway,
which is handy for checking bucket credentials by hand.

Usage:
    python scripts/upload_artifact.py path/to/clip.mp4 --task-id abc123 --format mp4
    python scripts/upload_artifact.py path/to/clip.mp4 --task-id abc123 --delete

Requires:
    - .env file (or environment) with R2_* credentials, or R2_MOCK_MODE=true
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.config.settings import get_settings  # noqa: E402
from src.infrastructure.storage import ConfigError, StorageError  # noqa: E402
from src.main import build_storage_gateway  # noqa: E402


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("file_path", help="Local file to upload")
    parser.add_argument("--task-id", required=True, help="Task identifier used in the key")
    parser.add_argument(
        "--format",
        default=None,
        help="Format used for the content type (default: the file's extension)",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete the object again after printing its info",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    gateway = build_storage_gateway(get_settings())

    fmt = args.format or Path(args.file_path).suffix.lstrip(".")

    result = await gateway.upload(args.file_path, args.task_id, fmt)
    print(f"Uploaded: {result.key} ({result.upload_time.isoformat()})")

    url = await gateway.generate_download_url(result.key)
    print(f"Download URL (1 hour): {url}")

    info = await gateway.get_file_info(result.key)
    if info is not None:
        print(f"Stored: {info.content_type}, {info.size} bytes")

    if args.delete:
        await gateway.delete(result.key)
        print(f"Deleted: {result.key}")

    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return asyncio.run(run(args))
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except StorageError as e:
        print(f"{e} (caused by: {e.__cause__!r})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
