"""Install strategies."""

from __future__ import annotations

from tool_installer.deadline import Deadline

from .base import BaseStrategy
from .package_manager import PackageManagerInstall
from .release import ARCHIVE_FORMATS, ArchiveLayout, ReleaseDownload
from .vendor_script import VendorScript

__all__ = [
    "ARCHIVE_FORMATS",
    "ArchiveLayout",
    "BaseStrategy",
    "Deadline",
    "PackageManagerInstall",
    "ReleaseDownload",
    "VendorScript",
]
