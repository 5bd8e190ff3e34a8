"""
Shared requests session with retry policy
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import CrawlConfig


def build_session(config: CrawlConfig) -> requests.Session:
    """Session with backoff retries on throttling and server errors"""
    session = requests.Session()
    retry_strategy = Retry(
        total=config.max_retries,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504]
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({'User-Agent': config.user_agent})
    return session


def fetch(session: requests.Session, url: str, config: CrawlConfig) -> requests.Response:
    response = session.get(url, timeout=config.request_timeout)
    response.raise_for_status()
    return response
