"""On-demand image manipulation core.

Subpackages:
- `core`: settings and logging
- `raster`: numpy-backed raster engine adapter (band ops, compositing, IO)
- `pipeline`: manipulators and the orchestrator that chains them
"""
