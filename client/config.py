"""
Client settings for talking to the Inkling Insights API.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class ClientConfig:
    api_url: str = "http://localhost:4000/api"
    timeout: float = 15.0
    search_debounce: float = 0.3


def get_client_config() -> ClientConfig:
    """Read INKLING_* variables from the environment (and .env)."""
    return ClientConfig(
        api_url=os.getenv("INKLING_API_URL", "http://localhost:4000/api").rstrip("/"),
        timeout=float(os.getenv("INKLING_API_TIMEOUT", "15")),
        search_debounce=float(os.getenv("INKLING_SEARCH_DEBOUNCE", "0.3")),
    )
