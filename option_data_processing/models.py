from typing import Optional, FrozenSet
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum


class SecurityType(str, Enum):
    EQUITY = "equity"
    INDEX = "index"
    OPTION = "option"
    INDEX_OPTION = "indexoption"


class Resolution(str, Enum):
    TICK = "tick"
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAILY = "daily"


class TickType(str, Enum):
    TRADE = "trade"
    QUOTE = "quote"
    OPEN_INTEREST = "openinterest"


class OptionRight(str, Enum):
    CALL = "C"
    PUT = "P"


class OptionStyle(str, Enum):
    AMERICAN = "american"
    EUROPEAN = "european"


@dataclass(frozen=True)
class Symbol:
    """Market identifier. Without expiry/strike/right it is the canonical root of an option chain."""
    ticker: str
    underlying: str
    security_type: SecurityType
    market: str = "usa"
    style: OptionStyle = OptionStyle.EUROPEAN
    expiry: Optional[date] = None
    strike: Optional[float] = None
    right: Optional[OptionRight] = None

    @classmethod
    def create_canonical_option(cls, underlying: str, ticker: Optional[str] = None,
                                security_type: SecurityType = SecurityType.INDEX_OPTION,
                                market: str = "usa") -> "Symbol":
        style = OptionStyle.EUROPEAN if security_type == SecurityType.INDEX_OPTION else OptionStyle.AMERICAN
        return cls(ticker=(ticker or underlying).upper(), underlying=underlying.upper(),
                   security_type=security_type, market=market, style=style)

    @classmethod
    def create_option_contract(cls, underlying: str, ticker: str, expiry: date, strike: float,
                               right: OptionRight,
                               security_type: SecurityType = SecurityType.INDEX_OPTION,
                               market: str = "usa") -> "Symbol":
        return cls.create_canonical_option(underlying, ticker, security_type, market).contract(expiry, strike, right)

    def contract(self, expiry: date, strike: float, right: OptionRight) -> "Symbol":
        """Derives a chain member of this root."""
        return replace(self, expiry=expiry, strike=float(strike), right=OptionRight(right))

    def is_canonical(self) -> bool:
        return self.expiry is None and self.strike is None and self.right is None

    @property
    def canonical(self) -> "Symbol":
        return replace(self, expiry=None, strike=None, right=None)

    @property
    def value(self) -> str:
        if self.is_canonical():
            return f"?{self.ticker}"
        # OSI layout: root padded to 6, yymmdd, right, strike * 1000 padded to 8
        return f"{self.ticker:<6}{self.expiry.strftime('%y%m%d')}{self.right.value}{round(self.strike * 1000):08d}"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class JobRequest:
    """Immutable parameters of a single download/processing job."""
    symbol: Symbol
    resolution: Resolution
    start_date: datetime
    end_date: datetime
    destination_folder: str
    raw_data_folder: str
    ticker_whitelist: FrozenSet[str] = field(default_factory=frozenset)


@dataclass
class TaskOutcome:
    """Result of one unit of work in a task group."""
    key: object
    result: object = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None
