import asyncio
import json
import pandas as pd
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .client import HistoryProvider
from .models import Symbol, Resolution, TickType
from .utils import get_logger


class RawDataRecordingDownloader:
    """
    Wraps a HistoryProvider and keeps a copy of every vendor payload it fetches in the raw data folder.

    Providers that expose a `raw_response_sink` hand each decoded response over as it arrives;
    it is stored untouched under `<raw_data_folder>/<endpoint>/`. Arguments and results pass
    through unchanged.
    """

    def __init__(self, provider: HistoryProvider, raw_data_folder: str):
        self.provider = provider
        self.raw_data_folder = Path(raw_data_folder)
        self.logger = get_logger("RawDataRecordingDownloader")
        self._closed = False

        if hasattr(provider, "raw_response_sink"):
            provider.raw_response_sink = self.record
        else:
            self.logger.warning(f"{type(provider).__name__} does not expose raw responses; nothing will be recorded.")

    @staticmethod
    def raw_file_name(params: dict) -> str:
        ids = "".join(str(params.get("ids", "all")).split()).lower()
        span = "_".join(str(params[k]).replace("-", "") for k in ("startDate", "endDate") if k in params)
        return f"{ids}_{span}.json" if span else f"{ids}.json"

    def _save(self, endpoint: str, params: dict, payload: dict) -> Path:
        target = self.raw_data_folder / endpoint
        target.mkdir(parents=True, exist_ok=True)
        path = target / self.raw_file_name(params)
        path.write_text(json.dumps(payload))
        return path

    async def record(self, endpoint: str, params: dict, payload: dict):
        path = await asyncio.to_thread(self._save, endpoint, params, payload)
        self.logger.info(f"Raw data saved: {path}")

    async def list_option_chain(self, symbol: Symbol, start: datetime, end: datetime) -> List[Symbol]:
        return await self.provider.list_option_chain(symbol, start, end)

    async def get_option_chains(self, symbol: Symbol, start: datetime, end: datetime) -> List[Symbol]:
        """Public chain retrieval for the processing job."""
        return await self.list_option_chain(symbol, start, end)

    async def get_history(self, symbol: Symbol, resolution: Resolution, start: datetime, end: datetime,
                          tick_type: TickType) -> Optional[pd.DataFrame]:
        return await self.provider.get_history(symbol, resolution, start, end, tick_type)

    async def close(self):
        if self._closed:
            return
        self._closed = True
        await self.provider.close()
