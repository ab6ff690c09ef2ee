"""Random-walk candle series for demos and tests."""

from __future__ import annotations

import random
from typing import List, Optional

from .models import Candle


def generate_sample_candles(
    count: int,
    seed: Optional[int] = 0,
    start_price: float = 100.0,
    start_time: float = 0.0
) -> List[Candle]:
    """
    Generate a random-walk OHLC series.

    Each candle opens at the previous close and lasts one time unit.

    Args:
        count: Number of candles
        seed: Random seed; the same seed gives the same series
        start_price: Open of the first candle
        start_time: Timestamp of the first candle

    Returns:
        Candles in timestamp order
    """
    rng = random.Random(seed)
    candles = []
    price = start_price

    for i in range(max(0, count)):
        open_ = price
        close = price + (rng.random() - 0.5) * 5
        high = max(open_, close) + rng.random() * 2
        low = min(open_, close) - rng.random() * 2
        candles.append(Candle(open_, high, low, close, timestamp=start_time + i))
        price = close

    return candles
