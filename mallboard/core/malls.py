"""MallBoard — Marketplace & Ad Channel Registry.

Defines the canonical marketplaces and external ad platforms, and maps each
one onto the fields of a daily sales row. The order of ``MALLS`` is the
chart stacking order.
"""

from enum import Enum
from typing import Dict, List


class Mall(str, Enum):
    """Marketplaces whose revenue and in-mall ad spend are tracked."""

    AMAZON = "amazon"
    RAKUTEN = "rakuten"
    QOO10 = "qoo10"


class AdPlatform(str, Enum):
    """External ad platforms (spend only, no revenue)."""

    X = "x"
    TIKTOK = "tiktok"


class ChannelDefinition:
    """Describes one sales or ad channel of a daily row."""

    def __init__(
        self,
        key: str,
        label: str,
        revenue_field: str | None,
        ad_field: str,
        color: str = "",
    ):
        self.key = key
        self.label = label
        self.revenue_field = revenue_field
        self.ad_field = ad_field
        self.color = color

    def __repr__(self) -> str:
        return f"<Channel {self.key}>"


# Stacking order: Amazon, then Rakuten, then Qoo10
MALLS: List[Mall] = [Mall.AMAZON, Mall.RAKUTEN, Mall.QOO10]
AD_PLATFORMS: List[AdPlatform] = [AdPlatform.X, AdPlatform.TIKTOK]

MALL_CHANNELS: Dict[Mall, ChannelDefinition] = {
    Mall.AMAZON: ChannelDefinition("amazon", "Amazon", "amazon", "amazon_ad", "#FF9900"),
    Mall.RAKUTEN: ChannelDefinition("rakuten", "楽天", "rakuten", "rakuten_ad", "#BF0000"),
    Mall.QOO10: ChannelDefinition("qoo10", "Qoo10", "qoo10", "qoo10_ad", "#3266CC"),
}

AD_PLATFORM_CHANNELS: Dict[AdPlatform, ChannelDefinition] = {
    AdPlatform.X: ChannelDefinition("x", "X", None, "x_ad", "#000000"),
    AdPlatform.TIKTOK: ChannelDefinition("tiktok", "TikTok", None, "tiktok_ad", "#FF0050"),
}

# Marker written into sales_data.source by each sync path
SOURCE_QOO10_API = "qoo10-api"
SOURCE_RAKUTEN_API = "rakuten-order-api"


def get_mall(name: str) -> Mall | None:
    """Look up a marketplace by its code (case-insensitive)."""
    try:
        return Mall(name.lower())
    except ValueError:
        return None
