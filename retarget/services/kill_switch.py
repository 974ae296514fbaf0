"""
Leaderboard kill-switch.

Below roughly 110px of height no recomposition keeps a person or hero image
recognizable. Instead of adapting such imagery, the switch hides it outright.
"""

from __future__ import annotations

import logging
from typing import List

from retarget.config import KillSwitchConfig
from retarget.models.layout import KillSwitchResult
from retarget.models.nodes import ContentNode, absolute_boxes
from retarget.models.signals import AiSignals
from retarget.models.targets import VariantTarget, get_target_by_id
from retarget.services.roles import classify_node_role


logger = logging.getLogger(__name__)


def should_activate_kill_switch(target: VariantTarget, config: KillSwitchConfig | None = None) -> bool:
    config = config or KillSwitchConfig()
    return target.height < config.height_threshold


def is_kill_switch_target(target_id: str, config: KillSwitchConfig | None = None) -> bool:
    """Whether the catalog target `target_id` is short enough to trigger the switch."""
    return should_activate_kill_switch(get_target_by_id(target_id), config)


def apply_leaderboard_kill_switch(
    frame: ContentNode,
    target: VariantTarget,
    config: KillSwitchConfig | None = None,
    signals: AiSignals | None = None,
    log: logging.Logger = logger,
) -> KillSwitchResult:
    """
    Hide subject/hero nodes anywhere under `frame` when `target` is too short.

    Idempotent: nodes that are already hidden are neither touched nor reported.
    """
    config = config or KillSwitchConfig()
    if config.height_threshold <= 0:
        raise ValueError(f"Kill-switch threshold must be positive, got {config.height_threshold}.")
    if target.height <= 0:
        raise ValueError(f"Target '{target.id}' has a non-positive height ({target.height}).")

    signals = signals if signals is not None else frame.ai_signals

    if not should_activate_kill_switch(target, config):
        log.debug(
            "Kill-switch inactive for %s: height %s >= threshold %s",
            target.id,
            target.height,
            config.height_threshold,
        )
        return KillSwitchResult(
            activated=False,
            target_height=target.height,
            threshold=config.height_threshold,
        )

    hidden: List[str] = []
    for node, box, z_index in absolute_boxes(frame):
        if not node.visible:
            continue
        if classify_node_role(node, frame, signals, z_index, box) in config.roles_to_hide:
            node.hide()
            hidden.append(node.id)

    log.info("Kill-switch activated for %s: hid %d node(s)", target.id, len(hidden))
    return KillSwitchResult(
        activated=True,
        hidden_node_ids=tuple(hidden),
        target_height=target.height,
        threshold=config.height_threshold,
    )
