"""Bundled default word lists."""
