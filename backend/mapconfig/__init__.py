"""
Map configuration model.

A map config is an ordered list of layers (each with base SQL and optional widgets).
Request parameters can filter layers through their widgets without touching the
original configuration.
"""
