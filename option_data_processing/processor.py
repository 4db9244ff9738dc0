import asyncio
from datetime import datetime
from typing import Callable, Iterable, Optional

from .client import HistoryProvider, VendorClient
from .config import AuthConfig
from .downloader import RawDataRecordingDownloader
from .exceptions import ProcessingError, InvalidSymbolKind, SymbolNotWhitelisted, UnsupportedResolution
from .models import JobRequest, Symbol, Resolution, SecurityType, TickType
from .tasks import run_task_group, raise_first_error
from .utils import Stopwatch, get_logger
from .writer import TimeSeriesWriter

VENDOR_NAME = "FactSet"
DATA_KINDS = (TickType.TRADE, TickType.OPEN_INTEREST)


class OptionChainDataProcessor:
    """
    Downloads trade and open interest history of a canonical index option chain and stores it
    in the local time series layout.

    Use as `async with OptionChainDataProcessor(...) as processor: await processor.run()`
    so the downloader is always released.
    """

    def __init__(self, auth_config: AuthConfig, symbol: Symbol, resolution: Resolution,
                 start_date: datetime, end_date: datetime, destination_folder: str, raw_data_folder: str,
                 ticker_whitelist: Optional[Iterable[str]] = None,
                 provider_factory: Optional[Callable[[AuthConfig], HistoryProvider]] = None,
                 writer_factory: Callable[..., TimeSeriesWriter] = TimeSeriesWriter):
        self._downloader = None
        self.logger = get_logger("OptionChainDataProcessor")
        self.request = JobRequest(
            symbol=symbol,
            resolution=resolution,
            start_date=start_date,
            end_date=end_date,
            destination_folder=destination_folder,
            raw_data_folder=raw_data_folder,
            ticker_whitelist=frozenset(ticker_whitelist or ()),
        )
        self._validate(self.request)

        self._writer_factory = writer_factory
        provider = (provider_factory or VendorClient)(auth_config)
        self._downloader = RawDataRecordingDownloader(provider, raw_data_folder)

    @staticmethod
    def _validate(request: JobRequest):
        symbol = request.symbol
        if symbol.security_type != SecurityType.INDEX_OPTION or not symbol.is_canonical():
            raise InvalidSymbolKind(
                f"Invalid symbol {symbol}. Only canonical {SecurityType.INDEX_OPTION.name} are supported.", symbol)

        # Exact, case-sensitive match. An empty whitelist rejects every symbol: callers must list the tickers they support.
        if symbol.ticker not in request.ticker_whitelist:
            raise SymbolNotWhitelisted(f"Symbol {symbol} is not currently supported.", symbol)

        if request.resolution != Resolution.DAILY:
            raise UnsupportedResolution(
                f"Unsupported resolution {request.resolution.name}. Only {Resolution.DAILY.name} is currently supported.",
                request.resolution)

    @property
    def downloader(self) -> Optional[RawDataRecordingDownloader]:
        return self._downloader

    async def _process(self, tick_type: TickType) -> bool:
        r = self.request
        data = await self._downloader.get_history(r.symbol, r.resolution, r.start_date, r.end_date, tick_type)
        if data is None or data.empty:
            self.logger.info(f"No {tick_type.name} data found for {r.symbol}.")
            return False

        writer = self._writer_factory(r.resolution, r.symbol, r.destination_folder, tick_type)
        await asyncio.to_thread(writer.write, data)
        return True

    async def run(self) -> bool:
        """
        Downloads and stores every data kind concurrently.

        Returns False when no kind produced data. Errors raised while downloading or writing
        propagate once every kind has finished.
        """
        if self._downloader is None:
            raise ProcessingError("The processor was already closed.")
        r = self.request
        stopwatch = Stopwatch()
        self.logger.info(f"Start downloading/processing {r.symbol} {r.resolution.name} data.")

        outcomes = await run_task_group({kind: (lambda kind=kind: self._process(kind)) for kind in DATA_KINDS})
        raise_first_error(outcomes)

        self.logger.info(f"Finished {r.symbol} {r.resolution.name} in {stopwatch.elapsed}")

        if all(not outcome.result for outcome in outcomes.values()):
            self.logger.error(f"Failed to download/process {r.symbol} {r.resolution.name} data.")
            return False
        return True

    async def close(self):
        """Releases the downloader. Safe to call any number of times."""
        downloader, self._downloader = self._downloader, None
        if downloader is None:
            return
        try:
            await downloader.close()
        except Exception as e:
            self.logger.warning(f"Error while releasing the downloader: {e!r}")

    async def __aenter__(self) -> "OptionChainDataProcessor":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


def process_option_chain(auth_config: AuthConfig, symbol: Symbol, resolution: Resolution,
                         start_date: datetime, end_date: datetime, destination_folder: str,
                         raw_data_folder: str, ticker_whitelist: Optional[Iterable[str]] = None) -> bool:
    """Public API: runs one processing job to completion and returns whether any data was stored."""

    async def _main() -> bool:
        async with OptionChainDataProcessor(auth_config, symbol, resolution, start_date, end_date,
                                            destination_folder, raw_data_folder, ticker_whitelist) as processor:
            return await processor.run()

    return asyncio.run(_main())
