import asyncio
import httpx
import pandas as pd
from datetime import date, datetime
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from .config import AuthConfig
from .exceptions import InvalidArgumentError
from .models import Symbol, Resolution, TickType
from .utils import timed_get, parse_response, RequestStats, RetryAuditLog, get_logger

ENDPOINTS = {
    "chain": "/options/references/chains",
    TickType.TRADE: "/options/prices",
    TickType.OPEN_INTEREST: "/options/open-interest",
}

# vendor field -> batch column
COLUMNS = {
    TickType.TRADE: {"open": "open", "high": "high", "low": "low", "price": "close", "volume": "volume"},
    TickType.OPEN_INTEREST: {"openInterest": "open_interest"},
}

FREQUENCIES = {Resolution.DAILY: "D"}

# (endpoint name, request params, decoded vendor payload)
RawResponseSink = Callable[[str, dict, dict], Awaitable[None]]


@runtime_checkable
class HistoryProvider(Protocol):
    """What the processing job needs from a market data vendor."""

    async def list_option_chain(self, symbol: Symbol, start: datetime, end: datetime) -> List[Symbol]:
        ...

    async def get_history(self, symbol: Symbol, resolution: Resolution, start: datetime, end: datetime,
                          tick_type: TickType) -> Optional[pd.DataFrame]:
        ...

    async def close(self) -> None:
        ...


class VendorClient:
    """HTTP Client for the vendor options API."""

    def __init__(self, auth_config: AuthConfig, transport: Optional[httpx.AsyncBaseTransport] = None,
                 stats_file: Optional[str] = None, audit_file: Optional[str] = None):
        self.base_url = auth_config.base_url.rstrip("/")
        self.session = httpx.AsyncClient(auth=auth_config.httpx_auth(), timeout=auth_config.timeout,
                                         transport=transport)
        self.logger = get_logger("VendorClient")
        self.stats = RequestStats(stats_file)
        self.audit = RetryAuditLog(audit_file)
        self.raw_response_sink: Optional[RawResponseSink] = None
        self._chains: Dict[Tuple[str, str, str], "asyncio.Future"] = {}
        self._closed = False

    def _format_date(self, value) -> str:
        return value.strftime("%Y-%m-%d")

    async def _get(self, endpoint, params: dict) -> list:
        name = endpoint.value if isinstance(endpoint, TickType) else endpoint
        payload = await timed_get(self.session, f"{self.base_url}{ENDPOINTS[endpoint]}", params,
                                  self.audit, self.stats, name)
        if payload is not None and self.raw_response_sink is not None:
            await self.raw_response_sink(name, params, payload)
        return parse_response(payload)

    async def list_option_chain(self, symbol: Symbol, start: datetime, end: datetime) -> List[Symbol]:
        """
        Lists the contracts of a canonical symbol that were listed between start and end.

        Concurrent and repeated calls for the same chain share a single vendor request.
        """
        key = (symbol.ticker, self._format_date(start), self._format_date(end))
        if key not in self._chains:
            self._chains[key] = asyncio.ensure_future(self._fetch_chain(symbol.canonical, start, end))
        return list(await self._chains[key])

    async def _fetch_chain(self, symbol: Symbol, start: datetime, end: datetime) -> List[Symbol]:
        rows = await self._get("chain", {
            "ids": symbol.ticker, "startDate": self._format_date(start), "endDate": self._format_date(end),
        })

        contracts = set()
        for row in rows:
            try:
                expiry = date.fromisoformat(row["expirationDate"])
                contracts.add(symbol.canonical.contract(expiry, float(row["strikePrice"]), row["callPutFlag"]))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning(f"Skipping malformed chain entry for {symbol}: {row} ({e})")
        return sorted(contracts, key=lambda s: (s.expiry, s.strike, s.right.value))

    async def get_history(self, symbol: Symbol, resolution: Resolution, start: datetime, end: datetime,
                          tick_type: TickType) -> Optional[pd.DataFrame]:
        """Historical data for a contract, or for every member of a canonical symbol's chain."""
        if tick_type not in COLUMNS:
            raise InvalidArgumentError(f"Unsupported tick type {tick_type.name}", tick_type)
        if resolution not in FREQUENCIES:
            raise InvalidArgumentError(f"Unsupported resolution {resolution.name}", resolution)

        contracts = await self.list_option_chain(symbol, start, end) if symbol.is_canonical() else [symbol]

        frames = []
        for contract in contracts:
            df = await self._fetch_contract(contract, resolution, start, end, tick_type)
            if df is not None:
                frames.append(df)

        if not frames:
            return None
        self.logger.info(f"Fetched {tick_type.name} history for {symbol} from {len(frames)} contracts.")
        return pd.concat(frames, ignore_index=True)

    async def _fetch_contract(self, contract: Symbol, resolution: Resolution, start: datetime, end: datetime,
                              tick_type: TickType) -> Optional[pd.DataFrame]:
        rows = await self._get(tick_type, {
            "ids": contract.value, "startDate": self._format_date(start), "endDate": self._format_date(end),
            "frequency": FREQUENCIES[resolution],
        })
        if not rows:
            return None

        columns = COLUMNS[tick_type]
        df = pd.DataFrame(rows)
        df = df[["date"] + [c for c in columns if c in df.columns]].rename(columns={"date": "time", **columns})
        df["time"] = pd.to_datetime(df["time"])
        df.insert(1, "symbol", contract.value)
        return df.dropna(subset=["time"]).sort_values("time")

    async def close(self):
        if self._closed:
            return
        self._closed = True
        for pending in self._chains.values():
            pending.cancel()
        await self.session.aclose()
