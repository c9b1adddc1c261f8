"""Core resolution, removal and state logic for wuctl."""
