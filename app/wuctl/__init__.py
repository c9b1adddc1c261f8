"""wuctl - Inventory and remove installed Windows updates."""

__version__ = "0.1.0"
