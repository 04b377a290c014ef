import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

API_URL = os.getenv("INSIGHTS_API_URL", "http://localhost:7071/api")
FUNCTION_KEY = os.getenv("INSIGHTS_FUNCTION_KEY", "")
ACCESS_TOKEN = os.getenv("INSIGHTS_ACCESS_TOKEN", "")
REQUEST_TIMEOUT = float(os.getenv("INSIGHTS_TIMEOUT", "30"))

PAGE_SIZE = int(os.getenv("PAGE_SIZE", "20"))
SEARCH_DEBOUNCE_MS = int(os.getenv("SEARCH_DEBOUNCE_MS", "300"))
OVERVIEW_TOP = int(os.getenv("OVERVIEW_TOP", "10000"))  # "all" utterances for the overview metrics

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")


@dataclass
class ApiConfig:
    base_url: str
    function_key: str = ""
    access_token: Optional[str] = None
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "ApiConfig":
        return cls(
            base_url=API_URL.rstrip("/"),
            function_key=FUNCTION_KEY,
            access_token=ACCESS_TOKEN or None,
            timeout=REQUEST_TIMEOUT,
        )
