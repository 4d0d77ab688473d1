"""Manipulation pipeline.

Modules:
- `geometry`: shape families to vector paths and mask boxes
- `trim`: crop rectangle for a shape mask
- `cutout`: mask alpha merged with image alpha
- `color`: background color parsing
- `background`: background compositing with premultiplication bookkeeping
- `orientation`: EXIF orientation resolution
- `shape`: shape manipulator (geometry, mask, cutout, trim)
- `params`: typed options and the threaded `PipelineState`
- `orchestrator`: ordered stage runner
"""
