"""Tile geometry and Web Mercator helpers."""
