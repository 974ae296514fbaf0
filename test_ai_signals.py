"""
Tests for the AI signal sanitizer.

The provider's payload is untrusted, so most of these feed it garbage and check
that only vocabulary-valid, clamped entries come out the other side.
"""

import math
import random

import pytest

from retarget.models.signals import AiSignals
from retarget.services.ai_signals import (
    QA_CODE_VOCABULARY,
    ROLE_VOCABULARY,
    clamp_to_unit,
    find_node_role,
    normalize_role,
    resolve_primary_focal_point,
    sanitize_ai_signals,
)


def test_clamp_to_unit_examples():
    assert clamp_to_unit(84) == 0.84
    assert clamp_to_unit(76) == 0.76
    assert clamp_to_unit("76%") is None
    assert clamp_to_unit(float("nan")) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        (0.42, 0.42),
        (1, 1.0),
        (0, 0.0),
        (-3, 0.0),
        (250, 1.0),
        (" 0.3 ", 0.3),
        ("55", 0.55),
        (float("inf"), None),
        ("inf", None),
        (True, None),
        (None, None),
        ([0.5], None),
        (10**400, None),
    ],
)
def test_clamp_to_unit(value, expected):
    assert clamp_to_unit(value) == expected


def test_normalize_role():
    assert normalize_role("heroImage") == "hero_image"
    assert normalize_role("Hero Image") == "hero_image"
    assert normalize_role("cta-secondary") == "cta_secondary"
    assert normalize_role("  LOGO ") == "logo"


@pytest.mark.parametrize(
    "raw",
    [
        {"roles": [], "focalPoints": [], "qa": [], "faceRegions": []},
        {},
        None,
        "roles",
        42,
        [{"nodeId": "a", "role": "logo"}],
        {"roles": "logo", "qa": {"code": "LOW_CONTRAST"}},
        {
            "roles": [{"nodeId": "a", "role": "spaceship"}, {"nodeId": 7, "role": "logo"}, "logo"],
            "focalPoints": [{"x": "0.5", "y": 0.5}, {"x": float("nan"), "y": 0.1}],
            "qa": [{"code": "NOT_A_CODE"}, {"code": 12}],
            "faceRegions": [{"x": 0.1, "y": 0.1, "width": None, "height": 0.2}],
        },
    ],
)
def test_sanitize_returns_none_without_usable_entries(raw):
    assert sanitize_ai_signals(raw) is None


def test_sanitize_keeps_valid_entries_and_normalizes_them():
    signals = sanitize_ai_signals(
        {
            "roles": [
                {"nodeId": "hero", "role": "heroImage", "confidence": 84},
                {"nodeId": "cta", "role": "CTA"},
                {"nodeId": "x", "role": "call to arms", "confidence": 0.99},
            ],
            "focalPoints": [{"nodeId": "hero", "x": 1.4, "y": -0.2, "confidence": 0.7}],
            "qa": [
                {"code": "low_contrast", "severity": "critical", "message": "Hard to read", "confidence": 0.9},
                {"code": "MISSING_CTA", "severity": "info", "message": 12},
            ],
            "faceRegions": [{"x": 0.4, "y": 0.2, "width": 0.01, "height": 0.95, "confidence": "0.8"}],
        }
    )

    assert [(role.node_id, role.role, role.confidence) for role in signals.roles] == [
        ("hero", "hero_image", 0.84),
        ("cta", "cta", 0.5),
    ]
    point = signals.focal_points[0]
    assert (point.x, point.y, point.confidence) == (1.0, 0.0, 0.7)
    assert [(qa.code, qa.severity, qa.message, qa.confidence) for qa in signals.qa] == [
        ("LOW_CONTRAST", "warn", "Hard to read", 0.9),
        ("MISSING_CTA", "info", None, None),
    ]
    face = signals.face_regions[0]
    assert (face.width, face.height, face.confidence) == (0.03, 0.8, 0.8)
    assert face.node_id == ""


def test_sanitize_accepts_snake_case_keys():
    signals = sanitize_ai_signals({"focal_points": [{"x": 0.5, "y": 0.5}], "face_regions": []})
    assert len(signals.focal_points) == 1
    assert signals.focal_points[0].confidence == 0.5


def test_find_node_role_prefers_most_confident_above_bar():
    signals = sanitize_ai_signals(
        {
            "roles": [
                {"nodeId": "n1", "role": "title", "confidence": 0.65},
                {"nodeId": "n1", "role": "subtitle", "confidence": 0.9},
                {"nodeId": "n2", "role": "logo", "confidence": 0.4},
            ]
        }
    )
    assert find_node_role(signals, "n1", 0.6).role == "subtitle"
    assert find_node_role(signals, "n2", 0.6) is None
    assert find_node_role(signals, "n2").role == "logo"
    assert find_node_role(None, "n1") is None


def test_resolve_primary_focal_point():
    signals = sanitize_ai_signals(
        {"focalPoints": [{"x": 0.1, "y": 0.1, "confidence": 0.3}, {"x": 0.6, "y": 0.4, "confidence": 0.8}]}
    )
    assert resolve_primary_focal_point(signals).x == 0.6
    assert resolve_primary_focal_point(None) is None


_FUZZ_STRINGS = [
    "",
    "logo",
    "heroImage",
    "LOW_CONTRAST",
    "nodeId",
    "76%",
    "0.5",
    "nan",
    "\u0000",
    "roles",
    "qa",
    "error",
    "info",
]
_FUZZ_KEYS = ["roles", "focalPoints", "qa", "faceRegions", "nodeId", "role", "code", "x", "y", "width", "height",
              "confidence", "severity", "message", "focal_points", "face_regions"]


def _random_value(rng, depth=0):
    kind = rng.randrange(10 if depth < 3 else 7)
    if kind == 0:
        return None
    if kind == 1:
        return rng.choice([True, False])
    if kind == 2:
        return rng.choice([rng.randint(-10**6, 10**6), 10**400, -(10**400)])
    if kind == 3:
        return rng.choice([rng.uniform(-200, 200), math.nan, math.inf, -math.inf])
    if kind in (4, 5, 6):
        return rng.choice(_FUZZ_STRINGS)
    if kind in (7, 8):
        return {rng.choice(_FUZZ_KEYS): _random_value(rng, depth + 1) for _ in range(rng.randrange(6))}
    return [_random_value(rng, depth + 1) for _ in range(rng.randrange(5))]


def _random_bundle(rng):
    bundle = {}
    for key in ("roles", "focalPoints", "qa", "faceRegions"):
        if rng.random() < 0.8:
            bundle[key] = [_random_value(rng, 1) for _ in range(rng.randrange(6))]
    return bundle


def test_sanitize_never_raises_on_random_input():
    rng = random.Random(20240611)
    for _ in range(2000):
        raw = _random_bundle(rng) if rng.random() < 0.7 else _random_value(rng)
        signals = sanitize_ai_signals(raw)
        if signals is None:
            continue
        assert isinstance(signals, AiSignals)
        assert signals.roles or signals.focal_points or signals.qa or signals.face_regions
        for role in signals.roles:
            assert role.role in ROLE_VOCABULARY
            assert 0 <= role.confidence <= 1
        for qa in signals.qa:
            assert qa.code in QA_CODE_VOCABULARY
            assert qa.severity in ("info", "warn", "error")
            assert qa.confidence is None or 0 <= qa.confidence <= 1
        for point in signals.focal_points:
            assert 0 <= point.x <= 1 and 0 <= point.y <= 1
        for face in signals.face_regions:
            assert 0.03 <= face.width <= 0.8 and 0.03 <= face.height <= 0.8
