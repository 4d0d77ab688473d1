from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from .color import Color, parse_color
from .geometry import ShapeKind, resolve_shape

DEFAULT_MAX_PAGE = 100000


def _present(params: Mapping[str, Any], name: str) -> bool:
    """Flag params count as set whenever the key is present, even when empty."""
    return name in params


def resolve_angle_rotation(value: Any) -> int:
    """Normalize a requested angle to 0/90/180/270; anything else is 0."""
    try:
        angle = int(str(value).strip())
    except (TypeError, ValueError):
        return 0
    angle %= 360
    return angle if angle in (90, 180, 270) else 0


class ShapeOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    shape: Optional[ShapeKind] = None
    trim: bool = False

    @field_validator("shape", mode="before")
    @classmethod
    def _known_shape(cls, value: Any) -> Optional[ShapeKind]:
        return resolve_shape(value)


class BackgroundOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: Optional[Color] = None

    @field_validator("color", mode="before")
    @classmethod
    def _parse_color(cls, value: Any) -> Optional[Color]:
        if value is None or isinstance(value, Color):
            return value
        return parse_color(str(value))


class OrientationOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    angle: int = 0
    flip: bool = False
    flop: bool = False

    @field_validator("angle", mode="before")
    @classmethod
    def _right_angle(cls, value: Any) -> int:
        return resolve_angle_rotation(value)


class LoadOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: Optional[int] = None

    @field_validator("page", mode="before")
    @classmethod
    def _page_in_range(cls, value: Any, info: ValidationInfo) -> Optional[int]:
        if value is None:
            return None
        max_page = (info.context or {}).get("max_page", DEFAULT_MAX_PAGE)
        try:
            page = int(str(value).strip())
        except ValueError:
            return None
        return page if 0 <= page <= max_page else None


class ManipulationOptions(BaseModel):
    """Typed view of the request params, validated once at pipeline entry."""

    model_config = ConfigDict(frozen=True)

    shape: ShapeOptions = ShapeOptions()
    background: BackgroundOptions = BackgroundOptions()
    orientation: OrientationOptions = OrientationOptions()
    load: LoadOptions = LoadOptions()

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        *,
        max_page: int = DEFAULT_MAX_PAGE,
    ) -> "ManipulationOptions":
        shape = resolve_shape(params.get("shape"))
        # Deprecated: circle=... predates shape=circle
        if shape is None and _present(params, "circle"):
            shape = ShapeKind.CIRCLE

        return cls.model_validate(
            {
                "shape": {"shape": shape, "trim": _present(params, "strim")},
                "background": {"color": params.get("bg")},
                "orientation": {
                    "angle": params.get("or", 0),
                    "flip": _present(params, "flip"),
                    "flop": _present(params, "flop"),
                },
                "load": {"page": params.get("page")},
            },
            context={"max_page": max_page},
        )


@dataclass
class PipelineState:
    """State threaded through the stages alongside the image.

    ``is_premultiplied`` must describe the image it travels with: a stage that
    premultiplies or unpremultiplies returns the updated flag in the same step.
    """

    options: ManipulationOptions = field(default_factory=ManipulationOptions)
    params: Dict[str, Any] = field(default_factory=dict)
    is_premultiplied: bool = False
    rotation: int = 0
    flip: bool = False
    flop: bool = False


def resolve_params(
    params: Mapping[str, Any],
    defaults: Optional[Mapping[str, Any]] = None,
    presets: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> Dict[str, Any]:
    """Merge defaults, the presets named by ``p`` (in order) and the request.

    Later sources win. Unknown preset names are skipped.
    """
    merged: Dict[str, Any] = dict(defaults or {})
    names = params.get("p")
    if names and presets:
        for name in str(names).split(","):
            preset = presets.get(name.strip())
            if preset:
                merged.update(preset)
    merged.update(params)
    return merged
