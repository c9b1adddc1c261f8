"""Inventory sources for installed updates, packages and drivers.

This module exports the source classes queried on every refresh.
"""

from wuctl.scanners.base import Source
from wuctl.scanners.dism import PackageSource, RollupIndexSource
from wuctl.scanners.history import HistorySource
from wuctl.scanners.pnputil import DriverSource

__all__ = ["DriverSource", "HistorySource", "PackageSource", "RollupIndexSource", "Source"]
