"""Tiered metric extraction: local patterns, model-assisted, provider insights."""

from tilehub.extraction.engine import DataGapReport, ExtractionEngine, identify_data_gaps
from tilehub.extraction.requirements import TILE_REQUIREMENTS, ExtractionRequirements, get_requirements
from tilehub.extraction.strategies import (
    ExtractionResult,
    ExtractionStrategy,
    InsightMergeStrategy,
    LocalPatternStrategy,
    ModelAssistedStrategy,
)

__all__ = [
    "ExtractionEngine",
    "DataGapReport",
    "identify_data_gaps",
    "ExtractionRequirements",
    "TILE_REQUIREMENTS",
    "get_requirements",
    "ExtractionResult",
    "ExtractionStrategy",
    "LocalPatternStrategy",
    "ModelAssistedStrategy",
    "InsightMergeStrategy",
]
