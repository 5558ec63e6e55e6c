import os
from typing import Optional

BASE_URL_ENV = 'SEQUIN_URL'
DEFAULT_BASE_URL = 'http://localhost:7376'

# transport-level retries on connection failures, fixed for every call
MAX_RETRIES = 3
DEFAULT_TIMEOUT = 30.0


def get_base_url(base_url: Optional[str] = None) -> str:
    """Resolve the Sequin server address

    Args:
        base_url: explicit address, wins over the environment

    Returns: base url without trailing slash

    """
    url = base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
    return url.rstrip('/')
