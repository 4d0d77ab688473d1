from __future__ import annotations

import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from imageproxy.core.config import Settings, get_settings
from imageproxy.raster.image import Raster

from .background import background_stage
from .orientation import exif_orientation, orientation_stage, resolve
from .params import ManipulationOptions, PipelineState, resolve_params
from .shape import shape_stage

Stage = Callable[[Raster, PipelineState], Tuple[Raster, PipelineState]]

STAGES: Dict[str, Stage] = {
    "orientation": orientation_stage,
    "shape": shape_stage,
    "background": background_stage,
}

logger = logging.getLogger(__name__)


def _resolve_stage(entry: Union[str, Stage]) -> Tuple[str, Stage]:
    if callable(entry):
        return getattr(entry, "__name__", type(entry).__name__), entry
    if entry not in STAGES:
        raise ValueError(f"Unknown manipulator: {entry!r} (known: {', '.join(STAGES)})")
    return entry, STAGES[entry]


class PipelineOrchestrator:
    """
    Runs an ordered chain of manipulators over one image.

    Each stage takes ``(image, state)`` and returns the pair it produced; the
    orchestrator owns neither between calls. A stage failure aborts the chain
    and propagates unchanged.
    """

    def __init__(
        self,
        stages: Optional[Sequence[Union[str, Stage]]] = None,
        *,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.stages: List[Tuple[str, Stage]] = [
            _resolve_stage(entry) for entry in (stages if stages is not None else settings.manipulators)
        ]
        self.defaults: Dict[str, Any] = dict(settings.default_params)
        self.presets: Dict[str, Dict[str, Any]] = {k: dict(v) for k, v in settings.presets.items()}
        self.max_page = settings.max_page

    def prepare(self, params: Mapping[str, Any]) -> Tuple[Dict[str, Any], ManipulationOptions]:
        """Merge defaults and presets into ``params`` and validate them once."""
        resolved = resolve_params(params, self.defaults, self.presets)
        return resolved, ManipulationOptions.from_params(resolved, max_page=self.max_page)

    def _initial_state(self, image: Raster, params: Mapping[str, Any]) -> PipelineState:
        resolved, options = self.prepare(params)
        rotation, flip, flop = resolve(exif_orientation(image), options.orientation)
        return PipelineState(
            options=options,
            params=resolved,
            is_premultiplied=False,
            rotation=rotation,
            flip=flip,
            flop=flop,
        )

    def run_with_state(
        self,
        image: Raster,
        params: Mapping[str, Any],
    ) -> Tuple[Raster, PipelineState]:
        state = self._initial_state(image, params)
        logger.debug(
            "pipeline_start",
            extra={
                "width": image.width,
                "height": image.height,
                "bands": image.bands,
                "stages": [name for name, _ in self.stages],
            },
        )

        for name, stage in self.stages:
            t0 = time.perf_counter()
            try:
                image, state = stage(image, state)
            except Exception:
                logger.exception("stage_failed", extra={"stage": name})
                raise
            t1 = time.perf_counter()
            logger.info(
                "stage_timing",
                extra={
                    "stage": name,
                    "ms": int((t1 - t0) * 1000),
                    "is_premultiplied": state.is_premultiplied,
                },
            )

        # Never hand premultiplied pixels to the encoder
        if state.is_premultiplied:
            image = image.unpremultiply().cast(image.integer_format())
            state = replace(state, is_premultiplied=False)
            logger.debug("pipeline_unpremultiply", extra={"format": image.format})

        return image, state

    def run(self, image: Raster, params: Mapping[str, Any]) -> Raster:
        """Executes all stages in order and returns the output image."""
        image, _ = self.run_with_state(image, params)
        return image


def run_pipeline(
    image_path: Union[str, Path],
    params: Mapping[str, Any],
    **kwargs: Any,
) -> Tuple[Raster, PipelineState]:
    """
    High-level wrapper: decode ``image_path`` and run the orchestrator over it.
    """
    from imageproxy.raster.io import load_image

    orchestrator = PipelineOrchestrator(**kwargs)
    _, options = orchestrator.prepare(params)
    image = load_image(Path(image_path), page=options.load.page)
    return orchestrator.run_with_state(image, params)
