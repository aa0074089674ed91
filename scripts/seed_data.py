import sys
import os
import asyncio

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend')))

from releasedesk.core.config import settings
from releasedesk.services.distribution import DistributionTracker
from releasedesk.services.release_store import ReleaseStore


async def create_demo_data():
    store = ReleaseStore(settings.RELEASES_ROOT)
    tracker = DistributionTracker(store)

    # Create demo releases (metadata only, no audio)
    releases = [
        {
            "releaseId": "2026-02-08_SophieJoe_TellMe",
            "artist": "Sophie Joe",
            "title": "Tell Me",
            "genre": "Melodic House",
            "releaseFormat": "Single",
            "releaseDate": "2026-02-08",
        },
        {
            "releaseId": "2026-03-14_SophieJoe_NightDrive",
            "artist": "Sophie Joe",
            "title": "Night Drive",
            "genre": "Progressive House",
            "releaseFormat": "EP",
            "releaseDate": "2026-03-14",
        },
    ]
    for release in releases:
        await store.save(release["releaseId"], release)

    # Log some distribution activity
    await tracker.append_or_update(
        "2026-02-08_SophieJoe_TellMe", "release",
        {"platform": "SoundCloud", "versionId": "primary", "status": "Uploaded"}
    )
    await tracker.append_or_update(
        "2026-02-08_SophieJoe_TellMe", "submit",
        {"label": "Anjunadeep", "platform": "LabelRadar", "status": "Submitted"}
    )
    await tracker.append_or_update(
        "2026-03-14_SophieJoe_NightDrive", "promote",
        {"platform": "Instagram", "status": "Posted", "contentType": "Reel"}
    )

    print(f"✅ Demo data created in {store.root}")

if __name__ == "__main__":
    asyncio.run(create_demo_data())
