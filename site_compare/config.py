# === FILE: site_compare/config.py ===
"""
Loading and validation of the SiteCompare configuration.
The schema is described with Pydantic; files may be YAML or JSON.
"""
from __future__ import annotations

import errno
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"

# OneTrust cookie consent chrome
DEFAULT_HIDE_SELECTORS = (
    "#onetrust-consent-sdk",
    "#onetrust-banner-sdk",
    ".onetrust-pc-dark-filter",
    "#ot-sdk-btn-floating",
)


class MatchStrategy(str, Enum):
    """How pages of the two sites are paired."""

    EXACT = "exact"
    NORMALIZED = "normalized"


class Viewport(str, Enum):
    """Browser window presets a comparison can run at."""

    DESKTOP = "desktop"
    MOBILE = "mobile"


VIEWPORT_SIZES: Dict[Viewport, Tuple[int, int]] = {
    Viewport.DESKTOP: (1280, 800),
    Viewport.MOBILE: (375, 812),
}


class CompareConfig(BaseModel):
    """Configuration for one comparison run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(100, ge=1, description="Hard cap of visited pages per site.")
    navigation_timeout: float = Field(5.0, gt=0, description="Navigation timeout per page (seconds).")
    settle_delay: float = Field(1.5, ge=0, description="Pause before the screenshot (seconds).")
    viewport: Viewport = Field(Viewport.DESKTOP, description="Browser window preset.")
    # explicit sizes win over the preset
    viewport_width: Optional[int] = Field(None, ge=1)
    viewport_height: Optional[int] = Field(None, ge=1)
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="User-Agent of the browser.")
    hide_selectors: List[str] = Field(
        default_factory=lambda: list(DEFAULT_HIDE_SELECTORS),
        description="CSS selectors hidden before capture.",
    )
    jpeg_quality: int = Field(85, ge=1, le=100)

    match_strategy: MatchStrategy = Field(MatchStrategy.NORMALIZED, description="Page pairing strategy.")

    diff_max_dimension: int = Field(600, ge=1, description="Longest side of the comparison canvas.")
    diff_threshold: int = Field(30, ge=0, description="Summed RGB delta above which a pixel differs.")
    diff_min_box_size: int = Field(5, ge=1, description="Smallest reported box side, in canvas pixels.")

    compare_timeout: Optional[float] = Field(None, gt=0, description="Deadline of a whole run (seconds).")

    @field_validator("hide_selectors", mode="before")
    def _split_selectors(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @property
    def viewport_size(self) -> Dict[str, int]:
        width, height = VIEWPORT_SIZES[self.viewport]
        return {
            "width": self.viewport_width or width,
            "height": self.viewport_height or height,
        }

    def with_viewport(self, viewport: Union[Viewport, str]) -> CompareConfig:
        """Copy switched to another preset; explicit sizes are dropped."""
        return self.model_copy(
            update={"viewport": Viewport(viewport), "viewport_width": None, "viewport_height": None}
        )


DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> CompareConfig:
    """
    Read YAML or JSON and return a validated CompareConfig.

    Without an explicit path, ``configs/default.yaml`` is used when present,
    otherwise the built-in defaults. An explicit path that does not exist
    raises FileNotFoundError.
    """
    if path is None:
        if not DEFAULT_CFG.is_file():
            return CompareConfig()
        path_obj = DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CompareConfig(**data)
