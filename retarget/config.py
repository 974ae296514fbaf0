"""
Runtime configuration for the retargeting service.

Process-level settings come from the environment (optionally seeded from a
`.env` file by `retarget.main`). Engine thresholds live in frozen dataclasses
that callers pass explicitly into each component, so there is no hidden global
state and tests can tune a single threshold in isolation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ExpansionConfig:
    """
    Interior/edge split for flow containers with two or more flow children.

    Sparse content gets a larger share of the slack between elements than dense
    content. The fractions are tunable; they are all majority shares.
    """

    sparse_max_children: int = 3
    moderate_max_children: int = 5
    sparse_interior_fraction: float = 0.75
    moderate_interior_fraction: float = 0.65
    dense_interior_fraction: float = 0.55


@dataclass(frozen=True, slots=True)
class KillSwitchConfig:
    height_threshold: float = 110
    roles_to_hide: frozenset[str] = frozenset({"subject", "hero_image", "hero_bleed", "hero"})


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Thresholds shared by the retargeting pipeline."""

    safe_area_ratio: float = 0.05
    # AI role assignments below this confidence never override structure.
    ai_role_min_confidence: float = 0.6
    # AI QA findings below this confidence are not surfaced as warnings.
    ai_qa_min_confidence: float = 0.5
    grouping_threshold: float = 50.0
    misaligned_tolerance: float = 32.0
    safe_area_tolerance: float = 2.0
    expansion: ExpansionConfig = field(default_factory=ExpansionConfig)
    kill_switch: KillSwitchConfig = field(default_factory=KillSwitchConfig)


@dataclass(frozen=True, slots=True)
class Settings:
    """Process settings read from the environment."""

    storage_dir: Path = Path("storage/jobs")
    log_level: str = "INFO"
    engine: EngineConfig = field(default_factory=EngineConfig)

    @classmethod
    def from_env(cls) -> Settings:
        safe_area_ratio = float(os.getenv("RETARGET_SAFE_AREA_RATIO", "0.05"))
        kill_switch_height = float(os.getenv("RETARGET_KILL_SWITCH_HEIGHT", "110"))
        engine = EngineConfig(
            safe_area_ratio=safe_area_ratio,
            kill_switch=KillSwitchConfig(height_threshold=kill_switch_height),
        )
        return cls(
            storage_dir=Path(os.getenv("RETARGET_STORAGE_DIR", "storage/jobs")),
            log_level=os.getenv("RETARGET_LOG_LEVEL", "INFO").upper(),
            engine=engine,
        )
