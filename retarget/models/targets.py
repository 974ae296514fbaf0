from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


class UnknownTargetError(LookupError):
    """Raised when a target id is not present in the catalog (a caller/config bug)."""


@dataclass(frozen=True, slots=True)
class VariantTarget:
    """A named destination canvas."""

    id: str
    label: str
    description: str
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / max(self.height, 1)


VARIANT_TARGETS: Tuple[VariantTarget, ...] = (
    VariantTarget("figma-cover", "Figma Community Cover", "1920 × 960 hero cover", 1920, 960),
    VariantTarget("figma-gallery", "Figma Community Gallery", "1600 × 960 gallery preview", 1600, 960),
    VariantTarget("figma-thumbnail", "Figma Community Thumbnail", "480 × 320 thumbnail", 480, 320),
    VariantTarget("web-hero", "Web Hero Banner", "1440 × 600 responsive hero", 1440, 600),
    VariantTarget("social-carousel", "Social Carousel Panel", "1080 × 1080 square carousel tile", 1080, 1080),
    VariantTarget("youtube-cover", "YouTube Cover", "2560 × 1440 channel cover", 2560, 1440),
    VariantTarget("youtube-shorts", "YouTube Shorts", "1080 × 1920 shorts frame", 1080, 1920),
    VariantTarget("instagram-reels", "Instagram Reels", "1080 × 1920 reels frame", 1080, 1920),
    VariantTarget("tiktok-vertical", "TikTok Vertical Promo", "1080 × 1920 vertical spotlight", 1080, 1920),
    VariantTarget("facebook-cover", "Facebook Cover", "820 × 312 page cover", 820, 312),
    VariantTarget("display-leaderboard", "Display Leaderboard", "728 × 90 IAB leaderboard", 728, 90),
    VariantTarget("display-rectangle", "Display Medium Rectangle", "300 × 250 IAB rectangle", 300, 250),
    VariantTarget("display-skyscraper", "Display Wide Skyscraper", "160 × 600 IAB skyscraper", 160, 600),
    VariantTarget("gumroad-cover", "Gumroad Cover", "1280 × 720 product cover", 1280, 720),
    VariantTarget("gumroad-thumbnail", "Gumroad Thumbnail", "600 × 600 store thumbnail", 600, 600),
)

_TARGETS_BY_ID: Dict[str, VariantTarget] = {target.id: target for target in VARIANT_TARGETS}


def get_target_by_id(target_id: str) -> VariantTarget:
    """Return the catalog entry for `target_id` or raise `UnknownTargetError`."""
    try:
        return _TARGETS_BY_ID[target_id]
    except KeyError:
        raise UnknownTargetError(f"Unknown target id: {target_id!r}") from None


def resolve_targets(target_ids: List[str]) -> List[VariantTarget]:
    return [get_target_by_id(target_id) for target_id in target_ids]
