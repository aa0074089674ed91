import logging
import shutil
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

GIGABYTE = 1024 ** 3


def disk_status(releases_root: Path, low_space_gb: float = 10) -> Dict[str, Any]:
    """Disk usage of the drive holding the releases root."""
    # Walk up to the nearest existing folder so a fresh install still reports
    probe = Path(releases_root)
    while not probe.exists() and probe != probe.parent:
        probe = probe.parent

    usage = shutil.disk_usage(probe)
    total_gb = round(usage.total / GIGABYTE, 2)
    free_gb = round(usage.free / GIGABYTE, 2)
    used_gb = round(total_gb - free_gb, 2)
    used_percent = round((used_gb / total_gb) * 100, 1) if total_gb else 0.0

    is_low = usage.free < low_space_gb * GIGABYTE
    logger.info(f"Disk space check: {free_gb}GB free ({used_percent}% used)")

    return {
        "disk": {
            "totalGB": total_gb,
            "usedGB": used_gb,
            "freeGB": free_gb,
            "usedPercent": used_percent,
        },
        "warning": f"Low disk space! Less than {low_space_gb:g}GB remaining." if is_low else None,
        "releasesPath": str(releases_root),
    }
