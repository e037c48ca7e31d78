# stocky/services/valuation_service.py

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, List, Literal, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..core.errors import StorageError, ValidationError
from ..core.logging import StockyLogger, log_with_context, DEBUG
from ..database.connection import DatabaseManager
from ..types import Holding, Portfolio, Stats, HistoricalINR, PriceQuote, Reward
from ..utils.convert_time import utc_day_bounds
from .price_cache import PriceCache, utc_now


class ValuationService:
    """
    Read-side views over the reward table, valued at current cached prices.

    Shares are summed and multiplied as Decimal with no rounding, so a
    portfolio total is always exactly the sum of its holdings.

    Historical points are valued with today's price for every past date,
    not with the price recorded when the reward was admitted.
    """

    def __init__(self, db_manager: DatabaseManager, price_cache: PriceCache,
                 clock: Callable[[], datetime] = utc_now):
        self.db_manager = db_manager
        self.price_cache = price_cache
        self.clock = clock
        self.reward_repo = db_manager.get_reward_repo()
        self.logger = StockyLogger.get_logger('services.valuation_service')

    def get_portfolio(self, user_id: str) -> Portfolio:
        shares_by_symbol = self._shares_by_symbol(user_id)
        holdings = self._value_holdings(shares_by_symbol)
        total = sum((h.total_value_inr for h in holdings), Decimal(0))

        log_with_context(self.logger, DEBUG, "Portfolio computed",
                         user_id=user_id, holdings=len(holdings), total=str(total))
        return Portfolio(holdings=holdings, portfolio_total_inr=total)

    def get_stats(self, user_id: str, scope: Literal["all", "today"] = "all") -> Stats:
        if scope == "today":
            start, end = utc_day_bounds(self.clock().date())
        elif scope == "all":
            start = end = None
        else:
            raise ValidationError("scope", f"must be 'all' or 'today', got {scope!r}")

        shares_by_symbol = self._shares_by_symbol(user_id, start, end)
        holdings = self._value_holdings(shares_by_symbol)

        return Stats(
            scope=scope,
            shares_by_symbol=dict(shares_by_symbol),
            portfolio_value_inr=sum((h.total_value_inr for h in holdings), Decimal(0)),
        )

    def get_historical_inr(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        size: int = 50,
    ) -> List[HistoricalINR]:
        if page < 1:
            raise ValidationError("page", "must be 1 or greater")
        if size < 1:
            raise ValidationError("size", "must be 1 or greater")
        if start is not None and end is not None and start > end:
            raise ValidationError("from", "must not be after 'to'")

        shares_by_day: Dict[date, Dict[str, Decimal]] = defaultdict(lambda: defaultdict(Decimal))
        for reward in self._load_rewards(user_id, start, end):
            shares_by_day[reward.rewarded_at.date()][reward.stock_symbol] += reward.shares

        now = self.clock()
        quotes: Dict[str, PriceQuote] = {}
        points = []
        for day in sorted(shares_by_day):
            value = Decimal(0)
            stale = False
            for symbol, shares in sorted(shares_by_day[day].items()):
                if symbol not in quotes:
                    quotes[symbol] = self.price_cache.get_price(symbol)
                quote = quotes[symbol]
                value += shares * quote.price
                stale = stale or self.price_cache.is_stale(quote, now)
            points.append(HistoricalINR(date=day, inr_value=value, is_stale=stale))

        offset = (page - 1) * size
        return points[offset:offset + size]

    def list_rewards_for_date(self, user_id: str, day: Optional[date] = None) -> List[Reward]:
        start, end = utc_day_bounds(day or self.clock().date())
        return self._load_rewards(user_id, start, end)

    def _load_rewards(self, user_id: str, start: Optional[datetime] = None,
                      end: Optional[datetime] = None) -> List[Reward]:
        try:
            with self.db_manager.get_session() as session:
                rows = self.reward_repo.list_for_user(session, user_id, start, end)
                return [row.to_struct(Reward) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"could not load rewards for {user_id}: {e}") from e

    def _shares_by_symbol(self, user_id: str, start: Optional[datetime] = None,
                          end: Optional[datetime] = None) -> Dict[str, Decimal]:
        totals: Dict[str, Decimal] = defaultdict(Decimal)
        for reward in self._load_rewards(user_id, start, end):
            totals[reward.stock_symbol] += reward.shares
        return totals

    def _value_holdings(self, shares_by_symbol: Dict[str, Decimal]) -> List[Holding]:
        holdings = []
        for symbol in sorted(shares_by_symbol):
            total_shares = shares_by_symbol[symbol]
            price = self.price_cache.get_price(symbol).price
            holdings.append(Holding(
                symbol=symbol,
                total_shares=total_shares,
                current_price=price,
                total_value_inr=total_shares * price,
            ))
        return holdings
