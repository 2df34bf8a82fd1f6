"""
Tuning constants for heading detection and column detection.
"""

from dataclasses import dataclass, fields, replace
from typing import Dict, Tuple


@dataclass(frozen=True)
class HeuristicConfig:
    larger_font_ratio: float = 1.05      # "larger" means strictly above body * ratio
    smaller_font_ratio: float = 0.96
    title_case_ratio: float = 0.8
    non_numbered_max_length: int = 80
    full_width_tolerance: float = 0.1
    page_one_skip_ratio: float = 0.3
    min_line_length: int = 2
    max_line_length: int = 150
    # Native outline column estimation
    column_tolerance: float = 5.0
    left_column_ratio: float = 0.45
    right_column_ratio: float = 0.55
    # Document metadata detection
    title_region_ratio: float = 0.4
    title_font_ratio: float = 1.2
    metadata_pages: int = 2
    boilerplate_prefixes: Tuple[str, ...] = ("arXiv:",)

    def with_overrides(self, overrides: Dict) -> "HeuristicConfig":
        """Return a copy with known fields replaced; unknown keys raise TypeError."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown heuristic settings: {', '.join(sorted(unknown))}")
        return replace(self, **overrides)


@dataclass(frozen=True)
class ColumnDetectionConfig:
    min_lines: int = 10
    gutter_line_threshold: float = 0.25   # share of lines that must sit on each side of a gutter
    edge_margin_ratio: float = 0.1        # gutters this close to a page edge are margins
    min_gutter_width: float = 8.0
    full_width_ratio: float = 0.65        # lines wider than this share of content are full-width
    gutter_noise_ratio: float = 0.02      # share of lines allowed to cross a gutter
    column_start_tolerance: float = 6.0
    margin_padding: float = 5.0


DEFAULT_CONFIG = HeuristicConfig()
DEFAULT_COLUMN_CONFIG = ColumnDetectionConfig()
