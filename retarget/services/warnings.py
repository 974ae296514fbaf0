"""
QA warnings for a retargeted frame.

Geometric checks come first, then advisory findings from the AI layer. Only
geometry can produce an `error`; AI findings are capped at `warn`.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from retarget.config import EngineConfig
from retarget.models.layout import VariantWarning
from retarget.models.nodes import ContentNode
from retarget.models.signals import AiSignals
from retarget.models.targets import VariantTarget
from retarget.services.roles import combine_child_bounds
from retarget.services.safe_area import resolve_safe_area_insets, resolve_target_config, safe_bounds


logger = logging.getLogger(__name__)

OUTSIDE_SAFE_AREA_MESSAGE = "Some layers extend outside the safe area."
MISALIGNED_MESSAGE = "Primary content is offset; consider centering horizontally."

_AI_WARNINGS: Dict[str, Tuple[str, str]] = {
    "LOW_CONTRAST": ("AI_LOW_CONTRAST", "AI flagged low contrast between foreground and background."),
    "LOGO_TOO_SMALL": ("AI_LOGO_VISIBILITY", "Logo may be too small or obscured."),
    "TEXT_OVERLAP": ("AI_TEXT_OVERLAP", "Text elements may be overlapping or crowded."),
    "UNCERTAIN_ROLES": ("AI_ROLE_UNCERTAIN", "AI could not confidently identify some elements."),
    "SALIENCE_MISALIGNED": ("AI_SALIENCE_MISALIGNED", "Key visual focus may be misaligned with the frame."),
    "SAFE_AREA_RISK": ("AI_SAFE_AREA_RISK", "Important content may sit near or outside the safe area."),
}
_AI_GENERIC = ("AI_GENERIC", "AI surfaced a potential composition issue.")


def derive_warnings_from_ai_signals(
    signals: AiSignals | None,
    min_confidence: float = 0.5,
) -> List[VariantWarning]:
    """Re-code confident AI QA findings into the internal `AI_*` vocabulary."""
    if signals is None:
        return []
    warnings: List[VariantWarning] = []
    for qa in signals.qa:
        if qa.confidence is not None and qa.confidence < min_confidence:
            continue
        code, default_message = _AI_WARNINGS.get(qa.code, _AI_GENERIC)
        severity = "info" if qa.severity == "info" else "warn"
        warnings.append(VariantWarning(code=code, severity=severity, message=qa.message or default_message))
    return warnings


def collect_warnings(
    frame: ContentNode,
    target: VariantTarget,
    safe_area_ratio: float,
    signals: AiSignals | None = None,
    config: EngineConfig | None = None,
    log: logging.Logger = logger,
) -> List[VariantWarning]:
    """
    Check a frame sized for `target` against its safe area and alignment.

    When `signals` is omitted the frame's stored `ai_signals` are used.
    """
    config = config or EngineConfig()
    signals = signals if signals is not None else frame.ai_signals
    warnings: List[VariantWarning] = []

    content = combine_child_bounds(frame, signals)
    if content is not None:
        insets = resolve_safe_area_insets(target, safe_area_ratio)
        safe = safe_bounds(target.width, target.height, insets)
        if not safe.contains(content, tolerance=config.safe_area_tolerance):
            critical = resolve_target_config(target).safe_area_critical
            log.info(
                "OUTSIDE_SAFE_AREA on %s for %s: content=%s safe=%s",
                frame.id,
                target.id,
                content,
                safe,
            )
            warnings.append(
                VariantWarning(
                    code="OUTSIDE_SAFE_AREA",
                    severity="error" if critical else "warn",
                    message=OUTSIDE_SAFE_AREA_MESSAGE,
                )
            )

        offset = abs(content.center[0] - frame.bounds.width / 2)
        if offset > config.misaligned_tolerance:
            warnings.append(VariantWarning(code="MISALIGNED", severity="info", message=MISALIGNED_MESSAGE))

    warnings.extend(derive_warnings_from_ai_signals(signals, config.ai_qa_min_confidence))
    return warnings
