"""
Pytest configuration and fixtures.
"""

from pathlib import Path
from types import SimpleNamespace

import pytest

EXAMPLE_CONFIG = Path(__file__).parent.parent / "config.example.conf"

MOUNTINFO = """\
22 1 179:2 / / rw,noatime shared:1 - ext4 /dev/mmcblk0p2 rw
25 22 179:1 / /boot rw,relatime shared:3 - vfat /dev/mmcblk0p1 rw,fmask=0022
30 22 8:1 / /mnt/My\\040Disk rw,relatime shared:9 - exfat /dev/sda1 rw
31 22 0:40 / /run/user/1000 rw,nosuid - tmpfs tmpfs rw,size=94208k
"""


@pytest.fixture
def example_config_path() -> Path:
    """Path to the shipped example config file."""
    return EXAMPLE_CONFIG


@pytest.fixture
def mountinfo_path(tmp_path: Path) -> Path:
    """A mount table with root, /boot, an escaped mount point and a tmpfs."""
    path = tmp_path / "mountinfo"
    path.write_text(MOUNTINFO)
    return path


def make_statvfs(
    blocks: int, bfree: int, bavail: int, frsize: int = 4096
) -> SimpleNamespace:
    """Stand-in for an os.statvfs_result."""
    return SimpleNamespace(f_frsize=frsize, f_blocks=blocks, f_bfree=bfree, f_bavail=bavail)
