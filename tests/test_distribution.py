"""
Tests for distribution tracking and label signing.
"""

import pytest

from releasedesk.core.exceptions import BadRequestError, NotFoundException
from releasedesk.services.distribution import DistributionTracker, canonical_path
from releasedesk.services.release_store import ReleaseStore

from conftest import RELEASE_ID


pytestmark = pytest.mark.anyio


@pytest.fixture
async def tracker(store: ReleaseStore) -> DistributionTracker:
    await store.save(RELEASE_ID, {"artist": "Sophie Joe", "title": "Tell Me"})
    return DistributionTracker(store)


class TestCanonicalPath:
    """Path names and their aliases."""

    @pytest.mark.parametrize("path,expected", [
        ("release", "release"),
        ("Submit", "submit"),
        ("promote", "promote"),
        ("publish", "release"),
        ("streaming", "release"),
        ("labels", "submit"),
        ("marketing", "promote"),
    ])
    def test_accepted(self, path, expected):
        assert canonical_path(path) == expected

    @pytest.mark.parametrize("path", [None, "", "radio"])
    def test_rejected(self, path):
        with pytest.raises(BadRequestError):
            canonical_path(path)


class TestAppendOrUpdate:
    """Logging entries."""

    async def test_new_entry_gets_id_and_timestamp(self, tracker):
        result = await tracker.append_or_update(RELEASE_ID, "release", {"platform": "Spotify", "versionId": "primary"})
        assert result["created"] is True
        assert result["entry"]["id"]
        assert result["entry"]["timestamp"].endswith("Z")
        assert len(result["distribution"]["release"]) == 1

    async def test_same_identity_updates_in_place(self, tracker):
        first = await tracker.append_or_update(
            RELEASE_ID, "release", {"platform": "Spotify", "versionId": "primary", "status": "pending"}
        )
        second = await tracker.append_or_update(
            RELEASE_ID, "release", {"platform": "Spotify", "versionId": "primary", "status": "live"}
        )

        assert second["created"] is False
        assert len(second["distribution"]["release"]) == 1
        assert second["entry"]["status"] == "live"
        assert second["entry"]["id"] == first["entry"]["id"]
        assert second["entry"]["timestamp"] == first["entry"]["timestamp"]
        assert "updatedAt" in second["entry"]

    async def test_different_identity_adds_entry(self, tracker):
        await tracker.append_or_update(RELEASE_ID, "release", {"platform": "Spotify", "versionId": "primary"})
        result = await tracker.append_or_update(
            RELEASE_ID, "release", {"platform": "Spotify", "versionId": "radio-edit"}
        )
        assert len(result["distribution"]["release"]) == 2

    async def test_promote_identity_is_platform(self, tracker):
        await tracker.append_or_update(RELEASE_ID, "promote", {"platform": "TikTok", "url": "a"})
        result = await tracker.append_or_update(RELEASE_ID, "marketing", {"platform": "TikTok", "url": "b"})
        assert [e["url"] for e in result["distribution"]["promote"]] == ["b"]

    async def test_client_timestamp_is_kept(self, tracker):
        result = await tracker.append_or_update(
            RELEASE_ID, "promote", {"platform": "Instagram", "timestamp": "2026-02-01T10:00:00.000Z"}
        )
        assert result["entry"]["timestamp"] == "2026-02-01T10:00:00.000Z"

    async def test_platform_required(self, tracker):
        with pytest.raises(BadRequestError):
            await tracker.append_or_update(RELEASE_ID, "release", {"versionId": "primary"})

    async def test_submit_requires_label(self, tracker):
        with pytest.raises(BadRequestError):
            await tracker.append_or_update(RELEASE_ID, "submit", {"platform": "LabelRadar"})

    async def test_unknown_release(self, store):
        with pytest.raises(NotFoundException):
            await DistributionTracker(store).append_or_update("missing", "release", {"platform": "Spotify"})

    async def test_signed_submission_updates_label_info(self, tracker):
        result = await tracker.append_or_update(
            RELEASE_ID, "submit", {"platform": "LabelRadar", "label": "Anjunadeep", "status": "Signed"}
        )
        assert result["labelInfo"]["isSigned"] is True
        assert result["labelInfo"]["label"] == "Anjunadeep"
        assert result["labelInfo"]["signedDate"] == result["entry"]["signedAt"]


class TestEditAndDelete:
    """Changing logged entries by id or timestamp."""

    async def test_edit_keeps_identity_fields(self, tracker):
        created = await tracker.append_or_update(RELEASE_ID, "release", {"platform": "Spotify", "versionId": "primary"})
        entry = created["entry"]

        result = await tracker.edit(
            RELEASE_ID, "release", entry["id"], {"url": "https://open.spotify.com/x", "timestamp": "1999", "id": "x"}
        )
        assert result["entry"]["url"] == "https://open.spotify.com/x"
        assert result["entry"]["id"] == entry["id"]
        assert result["entry"]["timestamp"] == entry["timestamp"]

    async def test_edit_by_timestamp(self, tracker):
        created = await tracker.append_or_update(RELEASE_ID, "promote", {"platform": "YouTube"})
        result = await tracker.edit(RELEASE_ID, "promote", created["entry"]["timestamp"], {"views": 10})
        assert result["entry"]["views"] == 10

    async def test_edit_missing_entry(self, tracker):
        with pytest.raises(NotFoundException):
            await tracker.edit(RELEASE_ID, "release", "nope", {"url": "x"})

    async def test_delete_entry(self, tracker):
        created = await tracker.append_or_update(RELEASE_ID, "promote", {"platform": "YouTube"})
        result = await tracker.delete(RELEASE_ID, "promote", created["entry"]["id"])
        assert result["distribution"]["promote"] == []

    async def test_delete_missing_entry(self, tracker):
        with pytest.raises(NotFoundException):
            await tracker.delete(RELEASE_ID, "promote", "nope")

    async def test_deleting_signed_submission_resets_label_info(self, tracker):
        created = await tracker.append_or_update(
            RELEASE_ID, "submit", {"platform": "LabelRadar", "label": "Anjunadeep", "status": "signed"}
        )
        result = await tracker.delete(RELEASE_ID, "submit", created["entry"]["id"])
        assert result["labelInfo"]["isSigned"] is False
        assert result["labelInfo"]["label"] == ""
        assert result["labelInfo"]["signedDate"] is None

    async def test_deleting_unsigned_submission_keeps_label_info(self, tracker):
        await tracker.append_or_update(
            RELEASE_ID, "submit", {"platform": "LabelRadar", "label": "Anjunadeep", "status": "signed"}
        )
        pending = await tracker.append_or_update(
            RELEASE_ID, "submit", {"platform": "Email", "label": "Armada", "status": "pending"}
        )
        result = await tracker.delete(RELEASE_ID, "submit", pending["entry"]["id"])
        assert result["labelInfo"]["isSigned"] is True
        assert result["labelInfo"]["label"] == "Anjunadeep"

    async def test_unsigning_by_edit_resets_label_info(self, tracker):
        created = await tracker.append_or_update(
            RELEASE_ID, "submit", {"platform": "LabelRadar", "label": "Anjunadeep", "status": "signed"}
        )
        result = await tracker.edit(RELEASE_ID, "submit", created["entry"]["id"], {"status": "rejected"})
        assert result["labelInfo"]["isSigned"] is False


class TestMarkSigned:
    """Signing a release to a label."""

    async def test_marks_latest_matching_submission(self, tracker, store):
        await tracker.append_or_update(RELEASE_ID, "submit", {"platform": "Email", "label": "Anjunadeep"})
        await tracker.append_or_update(RELEASE_ID, "submit", {"platform": "LabelRadar", "label": "Anjunadeep"})

        result = await tracker.mark_signed(RELEASE_ID, "anjunadeep")
        assert result["entry"]["platform"] == "LabelRadar"
        assert result["entry"]["status"] == "signed"
        assert result["labelInfo"] == {
            **result["labelInfo"],
            "isSigned": True,
            "label": "Anjunadeep",
            "signedDate": result["entry"]["signedAt"],
        }

        document = await store.load_existing(RELEASE_ID)
        assert [e.get("status") for e in document["distribution"]["submit"]] == [None, "signed"]

    async def test_unknown_label(self, tracker):
        await tracker.append_or_update(RELEASE_ID, "submit", {"platform": "Email", "label": "Anjunadeep"})
        with pytest.raises(NotFoundException):
            await tracker.mark_signed(RELEASE_ID, "Armada")

    @pytest.mark.parametrize("label", [None, "", "  "])
    async def test_label_required(self, tracker, label):
        with pytest.raises(BadRequestError):
            await tracker.mark_signed(RELEASE_ID, label)
