"""
Tests for distribution packages and the storage check.
"""

import zipfile
from pathlib import Path

import pytest

from releasedesk.core.exceptions import BadRequestError, NotFoundException
from releasedesk.services.packages import PackageBuilder, package_filename, platform_slug
from releasedesk.services.release_store import ReleaseStore
from releasedesk.services.storage import disk_status

from conftest import RELEASE_ID, write_wav


pytestmark = pytest.mark.anyio


class TestNaming:
    def test_platform_slug(self):
        assert platform_slug("Apple Music") == "apple-music"
        assert package_filename("Beatport", "radio-edit") == "beatport-radio-edit.zip"

    def test_empty_platform(self):
        with pytest.raises(BadRequestError):
            platform_slug("  ")


class TestBuildPackage:
    @pytest.fixture
    async def builder(self, store: ReleaseStore, releases_root: Path) -> PackageBuilder:
        release_dir = releases_root / RELEASE_ID
        (release_dir / "versions" / "primary" / "audio").mkdir(parents=True)
        write_wav(release_dir / "versions" / "primary" / "audio" / "tell-me.wav")
        (release_dir / "artwork").mkdir()
        (release_dir / "artwork" / "cover.png").write_bytes(b"png")
        await store.save(RELEASE_ID, {
            "artist": "Sophie Joe",
            "title": "Tell Me",
            "versions": {"primary": {
                "versionName": "Primary Version",
                "versionId": "primary",
                "files": {"audio": [{"filename": "tell-me.wav"}], "artwork": [{"filename": "cover.png"}]},
            }},
        })
        return PackageBuilder(store)

    async def test_zip_contents(self, builder):
        result = await builder.build_package(RELEASE_ID, "Spotify", "primary")

        assert result["filename"] == "spotify-primary.zip"
        assert result["files"] == ["artwork/cover.png", "audio/tell-me.wav"]
        with zipfile.ZipFile(result["path"]) as archive:
            assert set(archive.namelist()) == {"artwork/cover.png", "audio/tell-me.wav", "metadata.json"}

    async def test_package_path(self, builder):
        await builder.build_package(RELEASE_ID, "Spotify", "primary")
        assert builder.package_path(RELEASE_ID, "spotify-primary.zip").is_file()
        with pytest.raises(NotFoundException):
            builder.package_path(RELEASE_ID, "tidal-primary.zip")

    async def test_unknown_version(self, builder):
        with pytest.raises(NotFoundException):
            await builder.build_package(RELEASE_ID, "Spotify", "extended-mix")

    async def test_unknown_release(self, store):
        with pytest.raises(NotFoundException):
            await PackageBuilder(store).build_package("missing", "Spotify", "primary")


class TestDiskStatus:
    def test_reports_usage(self, releases_root: Path):
        status = disk_status(releases_root, low_space_gb=0)
        assert status["disk"]["totalGB"] > 0
        assert 0 <= status["disk"]["usedPercent"] <= 100
        assert status["warning"] is None
        assert status["releasesPath"] == str(releases_root)

    def test_missing_root_uses_parent(self, tmp_path: Path):
        status = disk_status(tmp_path / "not" / "yet", low_space_gb=10 ** 9)
        assert status["warning"].startswith("Low disk space")
