"""
Distribution tracking.

Each release keeps three ordered lists of entries:

- ``release``: platform uploads (identity: platform + versionId)
- ``submit``: label submissions (identity: platform + label)
- ``promote``: marketing content (identity: platform)

Logging the same identity twice updates the existing entry in place. A
``submit`` entry with status "signed" is mirrored into the release's
``labelInfo``; the two must never disagree.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Depends

from releasedesk.core.exceptions import BadRequestError, NotFoundException
from releasedesk.services.release_store import (
    DISTRIBUTION_PATHS,
    ReleaseStore,
    get_release_store,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

SIGNED_STATUS = "signed"

# Path names used by earlier clients
PATH_ALIASES = {
    "publish": "release",
    "streaming": "release",
    "labels": "submit",
    "marketing": "promote",
}

Entry = Dict[str, Any]


def canonical_path(path: Optional[str]) -> str:
    name = (path or "").strip().lower()
    name = PATH_ALIASES.get(name, name)
    if name not in DISTRIBUTION_PATHS:
        raise BadRequestError(
            "Invalid distribution path",
            f"\"{path}\" is not valid. Use one of: {', '.join(DISTRIBUTION_PATHS)}"
        )
    return name


def entry_identity(path: str, entry: Entry) -> Tuple[Any, ...]:
    if path == "release":
        return entry.get("platform"), entry.get("versionId")
    if path == "submit":
        return entry.get("platform"), entry.get("label")
    return (entry.get("platform"),)


def is_signed(entry: Entry) -> bool:
    return str(entry.get("status") or "").strip().lower() == SIGNED_STATUS


def _same_label(first: Any, second: Any) -> bool:
    return str(first or "").strip().casefold() == str(second or "").strip().casefold()


def _find_by_key(entries: List[Entry], key: str) -> int:
    for index, entry in enumerate(entries):
        if key in (entry.get("id"), entry.get("timestamp")):
            return index
    return -1


def reset_label_info(label_info: Dict[str, Any]) -> None:
    label_info["isSigned"] = False
    label_info["label"] = ""
    label_info["signedDate"] = None


def _sync_label_info(document: Dict[str, Any], entry: Entry, was_signed: bool) -> None:
    label_info = document["labelInfo"]
    if is_signed(entry):
        entry.setdefault("signedAt", utc_timestamp())
        label_info["isSigned"] = True
        label_info["label"] = entry.get("label") or ""
        label_info["signedDate"] = entry["signedAt"]
    elif was_signed and _same_label(label_info.get("label"), entry.get("label")):
        reset_label_info(label_info)


class DistributionTracker:
    def __init__(self, store: ReleaseStore):
        self.store = store

    @staticmethod
    def _validate_entry(path: str, entry: Any) -> Entry:
        if not isinstance(entry, dict) or not entry:
            raise BadRequestError(
                "Missing required fields",
                "Request body must include \"path\" (release/submit/promote) and \"entry\""
            )
        if not entry.get("platform"):
            raise BadRequestError(
                "Missing platform",
                "The entry object must include a \"platform\" field (e.g. \"SoundCloud\", \"LabelRadar\")"
            )
        if path == "submit" and not entry.get("label"):
            raise BadRequestError("Missing label", "Label submissions must include a \"label\" field")
        return entry

    async def append_or_update(self, release_id: str, path: str, entry: Entry) -> Dict[str, Any]:
        """Add an entry, or merge it into the entry with the same identity."""
        path = canonical_path(path)
        entry = self._validate_entry(path, entry)

        def apply(document: Dict[str, Any]) -> Dict[str, Any]:
            entries = document["distribution"][path]
            identity = entry_identity(path, entry)
            index = next(
                (i for i, existing in enumerate(entries) if entry_identity(path, existing) == identity),
                -1
            )

            if index >= 0:
                previous = entries[index]
                merged = {**previous, **entry}
                merged["id"] = previous.get("id") or uuid.uuid4().hex
                if not entry.get("timestamp"):
                    merged["timestamp"] = previous.get("timestamp") or utc_timestamp()
                merged["updatedAt"] = utc_timestamp()
                entries[index] = merged
                current, created, was_signed = merged, False, is_signed(previous)
            else:
                current = dict(entry)
                current.setdefault("id", uuid.uuid4().hex)
                if not current.get("timestamp"):
                    current["timestamp"] = utc_timestamp()
                entries.append(current)
                created, was_signed = True, False

            if path == "submit":
                _sync_label_info(document, current, was_signed)

            return {
                "created": created,
                "entry": current,
                "distribution": document["distribution"],
                "labelInfo": document["labelInfo"],
            }

        result = await self.store.update(release_id, apply)
        action = "Added" if result["created"] else "Updated"
        logger.info(f"{action} {entry['platform']} in {path} for {release_id}")
        return result

    async def edit(self, release_id: str, path: str, key: str, patch: Entry) -> Dict[str, Any]:
        """Merge ``patch`` into the entry whose id or timestamp is ``key``."""
        path = canonical_path(path)
        if not isinstance(patch, dict):
            raise BadRequestError("Invalid entry update", "The request body must be a JSON object")

        def apply(document: Dict[str, Any]) -> Dict[str, Any]:
            entries = document["distribution"][path]
            index = _find_by_key(entries, key)
            if index < 0:
                raise NotFoundException("Entry", key)

            previous = entries[index]
            merged = {**previous, **patch}
            for fixed in ("id", "timestamp"):
                if fixed in previous:
                    merged[fixed] = previous[fixed]
                else:
                    merged.pop(fixed, None)
            merged["updatedAt"] = utc_timestamp()
            entries[index] = merged

            if path == "submit":
                _sync_label_info(document, merged, is_signed(previous))

            return {"entry": merged, "distribution": document["distribution"], "labelInfo": document["labelInfo"]}

        result = await self.store.update(release_id, apply)
        logger.info(f"Edited {path} entry {key} for {release_id}")
        return result

    async def delete(self, release_id: str, path: str, key: str) -> Dict[str, Any]:
        """Remove the entry whose id or timestamp is ``key``."""
        path = canonical_path(path)

        def apply(document: Dict[str, Any]) -> Dict[str, Any]:
            entries = document["distribution"][path]
            index = _find_by_key(entries, key)
            if index < 0:
                raise NotFoundException("Entry", key)

            removed = entries.pop(index)
            if path == "submit" and is_signed(removed):
                reset_label_info(document["labelInfo"])

            return {"entry": removed, "distribution": document["distribution"], "labelInfo": document["labelInfo"]}

        result = await self.store.update(release_id, apply)
        logger.info(f"Deleted {path} entry {key} from {release_id}")
        return result

    async def mark_signed(self, release_id: str, label_name: Optional[str]) -> Dict[str, Any]:
        """Flag the latest submission to ``label_name`` as signed."""
        if not label_name or not str(label_name).strip():
            raise BadRequestError("Missing labelName")

        def apply(document: Dict[str, Any]) -> Dict[str, Any]:
            submissions = document["distribution"]["submit"]
            matches = [entry for entry in submissions if _same_label(entry.get("label"), label_name)]
            if not matches:
                raise NotFoundException("Label submission", label_name)

            entry = matches[-1]
            signed_at = utc_timestamp()
            entry["status"] = SIGNED_STATUS
            entry["signedAt"] = signed_at
            entry["updatedAt"] = signed_at
            _sync_label_info(document, entry, was_signed=False)

            return {"entry": entry, "labelInfo": document["labelInfo"], "distribution": document["distribution"]}

        result = await self.store.update(release_id, apply)
        logger.info(f"Marked {release_id} as signed to {label_name}")
        return result


# Dependency
async def get_distribution_tracker(store: ReleaseStore = Depends(get_release_store)) -> DistributionTracker:
    return DistributionTracker(store)
