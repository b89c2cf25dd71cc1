"""
Filesystem usage collector.

For every configured path, asks the kernel for filesystem statistics
(statvfs) and reports:
- Total size (bytes)
- Free space (bytes, including root-reserved blocks)
- Available space (bytes, usable by unprivileged users)
- Used space (bytes)
- Usage percentage (%, computed against available space like df)

Samples are labelled with the mount that contains the path, resolved
from /proc/self/mountinfo by longest matching mount point.
"""

import os
import re
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, NamedTuple

from ..const import DEFAULT_MOUNTINFO_PATH, DEFAULT_STORAGE_PATHS
from ..logging import get_logger
from ..models import Sample
from ..models.sample import utc_now
from .base import Collector, CollectionError

logger = get_logger("collectors.storage")

MOUNTINFO_SEPARATOR = " - "

# mountinfo escapes space, tab, newline and backslash as three octal digits
_OCTAL_ESCAPE = re.compile(rb"\\([0-3][0-7]{2})")


class MountInfo(NamedTuple):
    """One entry of the mount table."""

    mount_point: str  # e.g., /, /boot/firmware
    fs_type: str  # e.g., ext4, vfat
    source: str  # e.g., /dev/mmcblk0p2


class FilesystemUsage(NamedTuple):
    """Byte counts derived from statvfs."""

    total: int
    free: int
    available: int
    used: int
    used_percent: float


def unescape_mount_field(field: str) -> str:
    r"""
    Decode octal escapes of a mountinfo field.

    "/mnt/My\040Disk" -> "/mnt/My Disk". A backslash that does not start
    a valid escape is kept as is.
    """
    if "\\" not in field:
        return field

    raw = _OCTAL_ESCAPE.sub(lambda m: bytes([int(m.group(1), 8)]), field.encode())
    return raw.decode("utf-8", errors="replace")


def parse_mountinfo(text: str) -> list[MountInfo]:
    """
    Parse the content of /proc/self/mountinfo.

    Each line has optional fields of variable count, so it is split on
    the " - " separator first: the mount point is the fifth field of the
    left part, fs type and source are the first two of the right part.
    Malformed lines are skipped.
    """
    mounts = []

    for line in text.splitlines():
        left, sep, right = line.partition(MOUNTINFO_SEPARATOR)
        if not sep:
            continue

        left_fields = left.split()
        right_fields = right.split()
        if len(left_fields) < 5 or len(right_fields) < 2:
            continue

        mounts.append(
            MountInfo(
                mount_point=unescape_mount_field(left_fields[4]),
                fs_type=right_fields[0],
                source=unescape_mount_field(right_fields[1]),
            )
        )

    return mounts


def read_mountinfo(path: str | Path = DEFAULT_MOUNTINFO_PATH) -> list[MountInfo]:
    """
    Read the mount table.

    Labels are best-effort, so an unreadable table yields no entries.
    """
    try:
        return parse_mountinfo(Path(path).read_text())
    except OSError as e:
        logger.debug(f"Cannot read mount table {path}: {e}")
        return []


def best_mount_for_path(mounts: Iterable[MountInfo], path: str) -> MountInfo | None:
    """
    Find the mount containing path.

    A mount point matches when it equals the path, is the root of an
    absolute path, or is a directory prefix of it ("/boot" matches
    "/boot/firmware" but not "/bootstrap"). The longest match wins.
    """
    best: MountInfo | None = None

    for mount in mounts:
        mp = mount.mount_point
        if not mp:
            continue

        if mp == "/":
            matches = path.startswith("/")
        else:
            matches = path == mp or path.startswith(mp + "/")

        if matches and (best is None or len(mp) > len(best.mount_point)):
            best = mount

    return best


def filesystem_usage(stat: Any) -> FilesystemUsage:
    """Derive byte counts from a statvfs result."""
    block_size = stat.f_frsize
    total = stat.f_blocks * block_size
    free = stat.f_bfree * block_size
    available = stat.f_bavail * block_size
    used = max(total - free, 0)

    used_percent = 0.0
    if total > 0:
        # Against available, not free: matches df for non-root users
        used_percent = (total - available) / total * 100.0

    return FilesystemUsage(total, free, available, used, used_percent)


class StorageCollector(Collector):
    """
    Collector for filesystem usage of a list of paths.

    Errors are best-effort: if at least one path can be measured, the
    failing ones are dropped silently. Only when none succeeds is the
    last failure raised.
    """

    COLLECTOR_ID = "storage_usage"

    def __init__(
        self,
        paths: Iterable[str] = DEFAULT_STORAGE_PATHS,
        mountinfo_path: str = DEFAULT_MOUNTINFO_PATH,
        statfs: Callable[[str], Any] = os.statvfs,
        collector_id: str | None = None,
    ):
        super().__init__(collector_id)
        self.paths = [os.path.normpath(p.strip()) for p in paths if p.strip()]
        self.mountinfo_path = mountinfo_path
        self._statfs = statfs

    def _labels(self, path: str, mounts: list[MountInfo]) -> dict[str, str]:
        labels = {"path": path}
        mount = best_mount_for_path(mounts, path)
        if mount is not None:
            if mount.mount_point:
                labels["mount_point"] = mount.mount_point
            if mount.fs_type:
                labels["fs_type"] = mount.fs_type
            if mount.source:
                labels["source"] = mount.source
        return labels

    async def collect(self) -> list[Sample]:
        if not self.paths:
            raise CollectionError("no storage paths configured")

        mounts = read_mountinfo(self.mountinfo_path)
        now = utc_now()

        samples: list[Sample] = []
        last_error: OSError | None = None

        for path in self.paths:
            try:
                usage = filesystem_usage(self._statfs(path))
            except OSError as e:
                logger.debug(f"statvfs failed for {path}: {e}")
                last_error = e
                continue

            labels = self._labels(path, mounts)

            def sample(name: str, value: float, unit: str) -> Sample:
                return Sample(name=name, value=float(value), unit=unit, timestamp=now, labels=labels)

            samples.extend(
                [
                    sample("storage_total_bytes", usage.total, "bytes"),
                    sample("storage_free_bytes", usage.free, "bytes"),
                    sample("storage_available_bytes", usage.available, "bytes"),
                    sample("storage_used_bytes", usage.used, "bytes"),
                    sample("storage_used_percent", usage.used_percent, "percent"),
                ]
            )

        if not samples and last_error is not None:
            raise last_error

        return samples
