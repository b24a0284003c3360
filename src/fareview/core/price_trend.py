# src/fareview/core/price_trend.py

from __future__ import annotations

from typing import List, Tuple

import numpy as np
import pandas as pd

from fareview.core.models import PriceBucket, PricePoint, PriceTrend, ProcessedFlight


# Width of one histogram bucket, in currency units
BUCKET_WIDTH = 50


def build_price_points(flights: List[ProcessedFlight]) -> Tuple[PricePoint, ...]:
    return tuple(
        PricePoint(
            price=f.price,
            date=f.departure_time.date().isoformat(),
            airline=f.main_airline,
            stops=f.total_stops,
        )
        for f in flights
    )


def _bucket_counts(prices: pd.Series, index: pd.Index) -> pd.Series:
    """Count prices per bucket start; buckets outside `index` are ignored."""
    if prices.empty:
        return pd.Series(0, index=index, dtype="int64")
    starts = (np.floor(prices / BUCKET_WIDTH) * BUCKET_WIDTH).astype("int64")
    return starts.value_counts().reindex(index, fill_value=0).astype("int64")


def build_buckets(all_prices: List[float], filtered_prices: List[float]) -> Tuple[PriceBucket, ...]:
    """
    Equal-width histogram of all vs. filtered prices.

    Bucket range is taken from the all-prices set: floor(min) to ceil(max),
    inclusive, in BUCKET_WIDTH steps. An empty all-set yields no buckets.
    """
    if not all_prices:
        return ()

    all_s = pd.Series(all_prices, dtype="float64")
    filtered_s = pd.Series(filtered_prices, dtype="float64")

    lo = int(np.floor(all_s.min() / BUCKET_WIDTH)) * BUCKET_WIDTH
    hi = int(np.ceil(all_s.max() / BUCKET_WIDTH)) * BUCKET_WIDTH
    index = pd.Index(range(lo, hi + BUCKET_WIDTH, BUCKET_WIDTH), dtype="int64")

    frame = pd.DataFrame(
        {
            "all_count": _bucket_counts(all_s, index),
            "filtered_count": _bucket_counts(filtered_s, index),
        },
        index=index,
    )

    return tuple(
        PriceBucket(price=int(row.Index), all_count=int(row.all_count), filtered_count=int(row.filtered_count))
        for row in frame.itertuples()
    )


def price_stats(flights: List[ProcessedFlight]) -> Tuple[float, float, float]:
    """(lowest, highest, average); all zero for an empty set."""
    if not flights:
        return 0.0, 0.0, 0.0
    prices = pd.Series([f.price for f in flights], dtype="float64")
    return float(prices.min()), float(prices.max()), float(prices.mean())


def aggregate(all_flights: List[ProcessedFlight], filtered_flights: List[ProcessedFlight]) -> PriceTrend:
    """
    Build the price trend shown next to the results.
    Statistics are computed over the filtered flights only.
    """
    lowest, highest, average = price_stats(filtered_flights)
    return PriceTrend(
        current=build_price_points(all_flights),
        filtered=build_price_points(filtered_flights),
        buckets=build_buckets(
            [f.price for f in all_flights],
            [f.price for f in filtered_flights],
        ),
        lowest=lowest,
        highest=highest,
        average=average,
    )


def trend_to_frame(trend: PriceTrend) -> pd.DataFrame:
    """Bucket table indexed by bucket start, ready for charting."""
    return pd.DataFrame(
        {
            "All flights": [b.all_count for b in trend.buckets],
            "Filtered": [b.filtered_count for b in trend.buckets],
        },
        index=pd.Index([b.price for b in trend.buckets], name="price"),
    )
