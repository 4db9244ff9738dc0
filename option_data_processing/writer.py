import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
from pathlib import Path
from typing import List

from .models import Symbol, Resolution, TickType
from .utils import get_logger

KEY_COLUMNS = ["time", "symbol"]


class TimeSeriesWriter:
    """Persists data point batches for one (symbol, resolution, tick type) into the local parquet store."""

    def __init__(self, resolution: Resolution, symbol: Symbol, destination_folder: str, tick_type: TickType):
        self.resolution = resolution
        self.symbol = symbol
        self.destination_folder = Path(destination_folder)
        self.tick_type = tick_type
        self.logger = get_logger("TimeSeriesWriter")

    @property
    def base_dir(self) -> Path:
        s = self.symbol
        return (self.destination_folder / s.security_type.value / s.market.lower()
                / self.resolution.value / s.ticker.lower())

    def file_path(self, year: int) -> Path:
        s = self.symbol
        return self.base_dir / f"{s.ticker.lower()}_{year}_{self.tick_type.value}_{s.style.value}.parquet"

    def write(self, data: pd.DataFrame) -> List[Path]:
        """Merges the batch into the yearly files it touches. Rows already stored for the same key are replaced."""
        if data is None or data.empty:
            return []

        df = data.copy()
        df["time"] = pd.to_datetime(df["time"])

        written = []
        for year, chunk in df.groupby(df["time"].dt.year):
            path = self.file_path(int(year))
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.exists():
                chunk = pd.concat([pd.read_parquet(path), chunk], ignore_index=True)

            chunk = (chunk.drop_duplicates(subset=KEY_COLUMNS, keep="last")
                     .sort_values(KEY_COLUMNS)
                     .reset_index(drop=True))
            pq.write_table(pa.Table.from_pandas(chunk, preserve_index=False), path, compression="snappy")
            self.logger.info(f"Saved: {path.name} ({len(chunk)} rows)")
            written.append(path)
        return written
