import asyncio
import json
import os
import sys
from dotenv import load_dotenv

# STEP 1: Set up the Python path for imports
# ------------------------------------------
# Add the 'Backend' directory to the system path so we can import from the 'releasedesk' package.
backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)

# STEP 2: Load environment variables
# ----------------------------------
# Load the .env file from the project root to get RELEASES_ROOT.
project_root = os.path.dirname(backend_dir)
load_dotenv(os.path.join(project_root, ".env"))

# STEP 3: Import application modules (NOW that path and env are set)
# -----------------------------------------------------------------
from releasedesk.core.config import settings
from releasedesk.services.release_store import METADATA_FILENAME, ReleaseStore


async def migrate_all(dry_run: bool = False) -> int:
    """
    Rewrite every metadata.json that still uses the old {"metadata": {...}}
    wrapper into the flat shape. Returns the number of documents migrated.
    """
    store = ReleaseStore(settings.RELEASES_ROOT)
    if not store.root.is_dir():
        print(f"Releases folder not found: {store.root}")
        return 0

    migrated = 0
    for release_dir in sorted(store.root.iterdir()):
        path = release_dir / METADATA_FILENAME
        if not path.is_file():
            continue
        try:
            with open(path, "r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except ValueError as e:
            print(f" Skipping {release_dir.name}: {e}")
            continue
        if not isinstance(raw.get("metadata"), dict):
            continue

        print(f" {release_dir.name}: flattening wrapped metadata")
        if not dry_run:
            # update() reads through the normalizer, so writing back is enough
            await store.update(release_dir.name, lambda document: None)
        migrated += 1

    print(f"\n{migrated} document(s) {'would be ' if dry_run else ''}migrated.")
    return migrated


if __name__ == "__main__":
    asyncio.run(migrate_all(dry_run="--dry-run" in sys.argv))
