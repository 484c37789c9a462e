"""MallBoard — Demo Data.

Deterministic sample rows for demo-mode sessions. Each day is seeded by its
date string, so the same day always shows the same numbers.
"""

import random
from typing import List

from mallboard.core.dates import iter_dates
from mallboard.models.catalog_models import EventFlag
from mallboard.models.sales_models import DailySalesRecord

DEMO_SOURCE = "demo"

DEMO_FLAGS = [
    ("ブラックフライデー", "11-24", "Amazon ブラックフライデーセール"),
    ("楽天スーパーSALE", "12-04", "楽天スーパーSALE 開始"),
    ("メガ割", "11-20", "Qoo10 メガ割"),
]


def _demo_row(day: str) -> DailySalesRecord:
    rng = random.Random(day)
    amazon = rng.randint(50000, 300000)
    rakuten = rng.randint(30000, 250000)
    qoo10 = rng.randint(10000, 150000)
    return DailySalesRecord(
        date=day,
        amazon=amazon,
        rakuten=rakuten,
        qoo10=qoo10,
        # In-mall ad spend runs at 5-15% of that mall's revenue
        amazon_ad=rng.randint(int(amazon * 0.05), int(amazon * 0.15)),
        rakuten_ad=rng.randint(int(rakuten * 0.05), int(rakuten * 0.15)),
        qoo10_ad=rng.randint(int(qoo10 * 0.05), int(qoo10 * 0.15)),
        x_ad=rng.randint(5000, 30000),
        tiktok_ad=rng.randint(5000, 25000),
        source=DEMO_SOURCE,
    )


def demo_sales(date_start: str, date_stop: str) -> List[DailySalesRecord]:
    """One demo row per day in the range."""
    return [_demo_row(day) for day in iter_dates(date_start, date_stop)]


def demo_flags(date_start: str, date_stop: str) -> List[EventFlag]:
    """Demo flags for every year the range touches, limited to the range."""
    flags: List[EventFlag] = []
    for year in range(int(date_start[:4]), int(date_stop[:4]) + 1):
        for name, month_day, description in DEMO_FLAGS:
            day = f"{year}-{month_day}"
            if date_start <= day <= date_stop:
                flags.append(EventFlag(name=name, date=day, description=description))
    return flags
