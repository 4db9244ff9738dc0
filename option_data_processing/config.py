import json
import httpx
from dataclasses import dataclass
from pathlib import Path

from .exceptions import InvalidArgumentError

DEFAULT_BASE_URL = "https://api.factset.com/content/factset-options-api/v1"


@dataclass(frozen=True)
class AuthConfig:
    """Credentials and endpoint of the vendor options API."""
    username: str
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0

    @classmethod
    def from_file(cls, path: str) -> "AuthConfig":
        """Reads the vendor's JSON credentials file."""
        raw = json.loads(Path(path).read_text())
        missing = [key for key in ("username", "api_key") if not raw.get(key)]
        if missing:
            raise InvalidArgumentError(f"Auth config {path} is missing: {', '.join(missing)}", path)
        return cls(
            username=raw["username"],
            api_key=raw["api_key"],
            base_url=raw.get("base_url", DEFAULT_BASE_URL),
            timeout=float(raw.get("timeout", 30.0)),
        )

    def httpx_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.username, self.api_key)
