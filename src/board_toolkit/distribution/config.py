"""
Module: distribution.config

Purpose:
    Configuration dataclass for the distribution controller. Immutable
    configuration with validation on construction.

Key Classes:
    - DistributionConfig: Controller and commit behaviour

Dependencies:
    - dataclasses (std)
    - pathlib (std)

Used By:
    - distribution.controller: Fetch/commit orchestration
    - gui.app: Launcher
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Optional


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DistributionConfig:
    """
    Configuration for a distribution session (immutable).

    Attributes:
        target_limit: Page size requested from the eligible-examiner lookup
        require_single_center: Refuse commits whose slices span exam centers
        sheet_output_dir: Write a distribution sheet PDF here after each
            successful commit (None = no sheet)
        sheet_font_path: TrueType font for the sheet; names in Bengali need
            one with Bengali glyphs (None = look for an installed one)
        clock: Returns the timestamp stamped on a commit batch

    Example:
        >>> config = DistributionConfig(sheet_output_dir=Path("sheets"))
        >>> config.target_limit
        5000
    """

    target_limit: int = 5000
    require_single_center: bool = True
    sheet_output_dir: Optional[Path] = None
    sheet_font_path: Optional[Path] = None
    clock: Callable[[], datetime] = field(default=_utc_now, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.target_limit <= 0:
            raise ValueError(f"target_limit must be positive: {self.target_limit}")
        if self.sheet_output_dir is not None and not isinstance(self.sheet_output_dir, Path):
            # Coerce str paths so callers can pass raw settings values
            object.__setattr__(self, "sheet_output_dir", Path(self.sheet_output_dir))
        if self.sheet_font_path is not None and not isinstance(self.sheet_font_path, Path):
            object.__setattr__(self, "sheet_font_path", Path(self.sheet_font_path))

    def timestamp(self) -> str:
        """ISO-8601 timestamp for a commit batch."""
        return self.clock().isoformat()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DistributionConfig:
        """
        Build a config from a plain mapping (e.g. loaded JSON).

        Unknown keys and ``clock`` are ignored.
        """
        known = {f.name for f in fields(cls)} - {"clock"}
        kwargs = {key: value for key, value in data.items() if key in known}
        for key in ("sheet_output_dir", "sheet_font_path"):
            if kwargs.get(key):
                kwargs[key] = Path(kwargs[key])
            else:
                kwargs.pop(key, None)
        return cls(**kwargs)
