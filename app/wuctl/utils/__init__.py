"""Utility modules for wuctl."""
