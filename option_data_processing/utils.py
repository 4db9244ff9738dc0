import httpx
import time
import logging
import csv
import os
from collections import deque
from typing import Dict, Any, Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from datetime import datetime, timedelta

from .exceptions import VendorError


def get_logger(name: str = "option_data_processing") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)
    return logger


class _CsvLog:
    """Most recent rows kept in memory (up to max_rows), every row mirrored to a CSV file when a filename is given."""
    headers: list = []

    def __init__(self, filename: Optional[str] = None, max_rows: int = 1000):
        self.filename = filename
        self.rows = deque(maxlen=max_rows)
        self._ensure_file_exists()

    def _ensure_file_exists(self):
        if self.filename and not os.path.exists(self.filename):
            with open(self.filename, 'w', newline='') as f:
                writer = csv.writer(f)
                writer.writerow(self.headers)

    def _append(self, row: list):
        self.rows.append(row)
        if self.filename:
            with open(self.filename, 'a', newline='') as f:
                writer = csv.writer(f)
                writer.writerow(row)


class RetryAuditLog(_CsvLog):
    headers = ["timestamp", "endpoint", "retry_count", "error_message"]

    def log_retry(self, endpoint: str, retry_count: int, error_message: str):
        self._append([datetime.now().isoformat(), endpoint, retry_count, error_message])


class RequestStats(_CsvLog):
    headers = ["timestamp", "endpoint", "duration", "status_code"]

    def add_stat(self, endpoint: str, duration: float, status_code: int):
        self._append([datetime.now().isoformat(), endpoint, duration, status_code])


class Stopwatch:
    """Wall-clock timer started on creation."""

    def __init__(self):
        self._start = time.perf_counter()

    @property
    def elapsed(self) -> timedelta:
        return timedelta(seconds=time.perf_counter() - self._start)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=6),
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.RequestError)),
    reraise=True
)
async def timed_get(client: httpx.AsyncClient, url: str, params: Dict[str, Any],
                    audit: RetryAuditLog, stats: RequestStats, endpoint: str) -> Optional[Dict[str, Any]]:
    """GET returning the decoded JSON body, or None when the vendor has nothing for the query (404)."""
    start_time = time.time()
    try:
        response = await client.get(url, params=params)
        duration = time.time() - start_time
        stats.add_stat(endpoint, duration, response.status_code)

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise httpx.HTTPStatusError(f"HTTP {response.status_code}: {response.text}", request=response.request, response=response)
        return response.json()
    except Exception as e:
        audit.log_retry(endpoint, 1, str(e))
        raise


def parse_response(response: Optional[Dict[str, Any]]) -> list:
    """Extracts the 'data' block from a vendor payload."""
    if not response:
        return []
    if response.get("errors"):
        raise VendorError(f"API Error: {response.get('errors')}")
    return response.get("data") or []
