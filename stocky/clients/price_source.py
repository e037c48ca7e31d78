# stocky/clients/price_source.py

from datetime import datetime
from decimal import Decimal
import random
from typing import Optional

from .interfaces import PriceSource
from ..types import PriceQuote


class SimulatedPriceSource(PriceSource):
    """
    Stand-in for a market data feed.

    Draws a uniform price in [min_price, max_price) rounded to paise, so the
    value is an exact two-place decimal.
    """

    def __init__(self, min_price: Decimal = Decimal("100"), max_price: Decimal = Decimal("1100"),
                 rng: Optional[random.Random] = None):
        if min_price <= 0 or max_price < min_price:
            raise ValueError("min_price must be positive and not above max_price")
        self.min_price = Decimal(min_price)
        self.max_price = Decimal(max_price)
        self.rng = rng or random.Random()

    def fetch_quote(self, symbol: str, as_of: datetime) -> PriceQuote:
        span_paise = int((self.max_price - self.min_price) * 100)
        offset = Decimal(self.rng.randrange(max(span_paise, 1))) / 100
        price = (self.min_price + offset).quantize(Decimal("0.01"))
        return PriceQuote(symbol=symbol, price=price, updated_at=as_of)
