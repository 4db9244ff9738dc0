"""
Option chain history processing job: downloads vendor trade and open interest history
for a canonical index option chain and stores it in a local parquet layout.
"""

from .client import VendorClient, HistoryProvider
from .config import AuthConfig
from .downloader import RawDataRecordingDownloader
from .exceptions import (
    ProcessingError,
    InvalidArgumentError,
    InvalidSymbolKind,
    SymbolNotWhitelisted,
    UnsupportedResolution,
    VendorError,
)
from .models import Symbol, SecurityType, Resolution, TickType, OptionRight, OptionStyle
from .processor import OptionChainDataProcessor, process_option_chain
from .writer import TimeSeriesWriter

__version__ = "0.1.0"

__all__ = [
    "VendorClient",
    "HistoryProvider",
    "AuthConfig",
    "RawDataRecordingDownloader",
    "ProcessingError",
    "InvalidArgumentError",
    "InvalidSymbolKind",
    "SymbolNotWhitelisted",
    "UnsupportedResolution",
    "VendorError",
    "Symbol",
    "SecurityType",
    "Resolution",
    "TickType",
    "OptionRight",
    "OptionStyle",
    "OptionChainDataProcessor",
    "process_option_chain",
    "TimeSeriesWriter",
]
