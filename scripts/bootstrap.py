"""Development bootstrap helpers.

- Installs the package with its dev extras (optional).
- Writes the demo dataset to the configured storage when none exists yet.
"""
from __future__ import annotations

import argparse
import asyncio
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def run(cmd: list[str]) -> None:
    """Run a command and stream output."""
    print(f"$ {' '.join(cmd)}")
    subprocess.run(cmd, check=True, cwd=ROOT)


async def seed_storage(force: bool) -> Path:
    from yisu_hotels.config.settings import Settings
    from yisu_hotels.platform import HotelPlatform
    from yisu_hotels.storage.seed import default_snapshot

    settings = Settings()
    platform = await HotelPlatform.start(settings)
    if force:
        await platform.repository.replace(default_snapshot(platform.hasher.hash))
    return settings.storage_path()


def main() -> None:
    parser = argparse.ArgumentParser(description="Bootstrap local development")
    parser.add_argument(
        "--skip-deps",
        action="store_true",
        help="Skip pip install -e .[dev] if dependencies already installed",
    )
    parser.add_argument(
        "--reset-data",
        action="store_true",
        help="Overwrite existing storage with the demo dataset",
    )
    args = parser.parse_args()

    if not args.skip_deps:
        run([sys.executable, "-m", "pip", "install", "-e", ".[dev]"])

    path = asyncio.run(seed_storage(force=args.reset_data))
    print(f"Storage ready at {path}")
    print("Bootstrap complete")


if __name__ == "__main__":
    main()
