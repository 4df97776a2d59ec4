"""
Data Normalizer

Converts raw vendor JSON into the canonical model. The rules here are
shared by every adapter:

- numeric fields become Decimal; values that cannot be represented
  (NaN, infinity, garbage strings) are absent, except `close`, which
  fails the record
- a latest quote with a zero close is "no data", not a zero price
- unparsable explicit timestamps fall back to the current time
- daily bars without a time of day are pinned to 14:00 UTC
- historical rows are validated one at a time; bad rows are skipped
"""
from datetime import datetime, date, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional
import math
import re
from loguru import logger

from market_data.providers.errors import (
    NoDataForRangeError,
    SymbolNotFoundError,
    ValidationFailedError,
)
from market_data.providers.models import AssetProfile, Quote


# Canonical time of day for daily bars, so same-day bars from different vendors compare equal.
DAILY_BAR_TIME = time(14, 0, 0, tzinfo=timezone.utc)


class DataNormalizer:
    """
    Normalizes market data from various providers into a consistent format.

    Features:
    - Decimal conversion of numeric fields
    - Timestamp normalization (UTC)
    - Partial-failure historical series normalization
    - Profile emptiness detection
    - Data quality checks
    """

    # ==================== Field Conversion ====================

    def to_decimal(self, value: Any) -> Optional[Decimal]:
        """Convert a numeric field to Decimal, or None if it cannot be represented."""
        if value is None or isinstance(value, bool):
            return None

        try:
            if isinstance(value, Decimal):
                result = value
            elif isinstance(value, int):
                result = Decimal(value)
            elif isinstance(value, float):
                if not math.isfinite(value):
                    return None
                # str() keeps the shortest repr instead of the binary expansion
                result = Decimal(str(value))
            elif isinstance(value, str):
                clean = re.sub(r'[,\s]', '', value)
                if not clean:
                    return None
                result = Decimal(clean)
            else:
                return None
        except (InvalidOperation, ValueError):
            return None

        return result if result.is_finite() else None

    def require_close(self, value: Any, provider: str) -> Decimal:
        """Convert the mandatory close price, failing the record if it is unusable."""
        close = self.to_decimal(value)
        if close is None:
            raise ValidationFailedError(f"Invalid close price: {value!r}", provider=provider)
        return close

    def to_int(self, value: Any) -> Optional[int]:
        """Convert a count field (e.g. employees) to int."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        number = self.to_decimal(value)
        if number is None:
            return None
        return int(number)

    def to_text(self, value: Any) -> Optional[str]:
        """Strip a string field; blank or non-string values are absent."""
        if not isinstance(value, str):
            return None
        value = value.strip()
        return value or None

    # ==================== Timestamps ====================

    def parse_timestamp(self, value: Any) -> datetime:
        """
        Parse an explicit vendor instant into a UTC datetime.

        Falls back to the current time rather than failing the record.
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)

        if isinstance(value, str) and value.strip():
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                logger.warning(f"Could not parse timestamp: {value}")
            else:
                if parsed.tzinfo is None:
                    return parsed.replace(tzinfo=timezone.utc)
                return parsed.astimezone(timezone.utc)

        return datetime.now(timezone.utc)

    def daily_timestamp(self, value: Any) -> datetime:
        """
        Build the canonical timestamp for a daily bar (YYYY-MM-DD).

        Raises:
            ValueError: If the date cannot be parsed
        """
        if isinstance(value, datetime):
            value = value.date()
        if isinstance(value, date):
            day = value
        elif isinstance(value, str):
            day = datetime.strptime(value.strip(), "%Y-%m-%d").date()
        else:
            raise ValueError(f"invalid date: {value!r}")
        return datetime.combine(day, DAILY_BAR_TIME)

    # ==================== Records ====================

    def normalize_latest(
        self,
        data: dict[str, Any],
        symbol: str,
        provider: str,
        currency: str,
    ) -> Quote:
        """
        Normalize a latest-quote payload.

        Args:
            data: Raw vendor object
            symbol: Requested symbol (for error messages)
            provider: Provider id stamped on the quote
            currency: Resolved currency, used when the payload has none

        Raises:
            SymbolNotFoundError: Close price is zero
            ValidationFailedError: Close price missing or unusable
        """
        close = self.require_close(data.get("close"), provider)
        if close.is_zero():
            raise SymbolNotFoundError(f"No quote data for symbol: {symbol}", provider=provider)

        return Quote(
            timestamp=self.parse_timestamp(data.get("timestamp")),
            open=self.to_decimal(data.get("open")),
            high=self.to_decimal(data.get("high")),
            low=self.to_decimal(data.get("low")),
            close=close,
            volume=self.to_decimal(data.get("volume")),
            currency=self.to_text(data.get("currency")) or currency,
            source=provider,
        )

    def normalize_history(
        self,
        rows: Iterable[Any],
        provider: str,
        currency: str,
    ) -> list[Quote]:
        """
        Normalize daily bars with partial-failure semantics.

        A malformed row (bad date, unusable close) is logged and skipped.

        Returns:
            Quotes sorted ascending by timestamp

        Raises:
            NoDataForRangeError: No row survived
        """
        quotes = []

        for row in rows:
            if not isinstance(row, dict):
                logger.warning(f"{provider}: skipping malformed row: {row!r}")
                continue

            try:
                timestamp = self.daily_timestamp(row.get("date"))
            except ValueError:
                logger.warning(f"{provider}: invalid date format: {row.get('date')}")
                continue

            close = self.to_decimal(row.get("close"))
            if close is None:
                logger.warning(f"{provider}: invalid close price on {row.get('date')}: {row.get('close')}")
                continue

            quotes.append(Quote(
                timestamp=timestamp,
                open=self.to_decimal(row.get("open")),
                high=self.to_decimal(row.get("high")),
                low=self.to_decimal(row.get("low")),
                close=close,
                volume=self.to_decimal(row.get("volume")),
                currency=currency,
                source=provider,
            ))

        if not quotes:
            raise NoDataForRangeError(provider=provider)

        quotes.sort(key=lambda q: q.timestamp)
        return quotes

    def normalize_profile(
        self,
        data: Any,
        symbol: str,
        provider: str,
        quote_type: Optional[str] = None,
    ) -> AssetProfile:
        """
        Normalize a profile payload.

        An object without a usable name is treated the same as a 404.

        Raises:
            SymbolNotFoundError: No resolvable name
        """
        name = self.to_text(data.get("name")) if isinstance(data, dict) else None
        if name is None:
            raise SymbolNotFoundError(f"No profile data for symbol: {symbol}", provider=provider)

        return AssetProfile(
            name=name,
            source=provider,
            quote_type=quote_type,
            sector=self.to_text(data.get("sector")),
            industry=self.to_text(data.get("industry")),
            country=self.to_text(data.get("country")),
            description=self.to_text(data.get("description")),
            website=self.to_text(data.get("website")),
            market_cap=self.to_decimal(data.get("market_cap")),
            employees=self.to_int(data.get("employees")),
            logo_url=self.to_text(data.get("logo_url")),
            pe_ratio=self.to_decimal(data.get("pe_ratio")),
            dividend_yield=self.to_decimal(data.get("dividend_yield")),
            week_52_high=self.to_decimal(data.get("week_52_high")),
            week_52_low=self.to_decimal(data.get("week_52_low")),
        )

    # ==================== Validation ====================

    def validate_quote(self, quote: Quote) -> list[str]:
        """
        Validate a quote for data quality issues.

        Returns:
            List of warning messages (empty if valid)
        """
        warnings = []

        # Check for negative price
        if quote.close < 0:
            warnings.append(f"Invalid price: {quote.close}")

        # Check day range consistency
        if quote.high is not None and quote.low is not None:
            if quote.low > quote.high:
                warnings.append("Invalid day range: low > high")
            elif quote.close > quote.high or quote.close < quote.low:
                warnings.append("Price outside day range")

        return warnings


# Global normalizer instance
data_normalizer = DataNormalizer()
