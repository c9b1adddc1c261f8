"""Removal executors for the native uninstall mechanisms.

This module provides the abstract executor interface and one concrete
executor per mechanism (DISM, pnputil, wusa).
"""

from wuctl.operators.base import RemovalExecutor
from wuctl.operators.dism import DismExecutor
from wuctl.operators.pnputil import PnpUtilExecutor
from wuctl.operators.wusa import WusaExecutor

__all__ = ["DismExecutor", "PnpUtilExecutor", "RemovalExecutor", "WusaExecutor"]
