"""
Example: Daily Index Option History
-----------------------------------
Downloads trade and open interest history of the SPX and SPXW option chains
and stores it under ./data_options, keeping the raw vendor responses in ./raw_data.

Credentials are read from a JSON file with "username" and "api_key" entries.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Add the parent directory to the path so Python can find 'option_data_processing'
sys.path.append(str(Path(__file__).resolve().parents[2]))
from option_data_processing import AuthConfig, Resolution, Symbol, process_option_chain

SUPPORTED_TICKERS = ["SPX", "SPXW"]


def main():
    auth_config = AuthConfig.from_file(sys.argv[1] if len(sys.argv) > 1 else "auth.json")
    start_date = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end_date = datetime(2024, 12, 31, tzinfo=timezone.utc)

    failed = []
    for ticker in SUPPORTED_TICKERS:
        symbol = Symbol.create_canonical_option("SPX", ticker)
        ok = process_option_chain(
            auth_config, symbol, Resolution.DAILY, start_date, end_date,
            destination_folder="./data_options",
            raw_data_folder="./raw_data",
            ticker_whitelist=SUPPORTED_TICKERS,
        )
        if not ok:
            failed.append(ticker)

    if failed:
        print(f"No data stored for: {', '.join(failed)}")
        sys.exit(1)
    print("All option chains processed successfully.")


if __name__ == "__main__":
    main()
