"""
Tile renderers.

- blend: composites several per-layer renderers into one PNG tile
- torque: builds and runs time-bucketed aggregation queries per tile
"""
