"""Tile synthesis and the per-batch orchestrator."""

from tilehub.orchestration.orchestrator import Orchestrator
from tilehub.orchestration.synthesis import TileSynthesizer

__all__ = ["Orchestrator", "TileSynthesizer"]
