"""Shared slowapi limiter for the tree endpoints.

Lives outside ``main`` so routers can import it without a cycle.
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

# TAGTREE_NO_RATE_LIMIT=true turns limiting off (the test suite sets it)
_enabled = os.environ.get("TAGTREE_NO_RATE_LIMIT", "").lower() != "true"

# Layout requests are CPU-bound tree rebuilds; one budget covers both endpoints
TREE_RATE_LIMIT = os.environ.get("TAGTREE_RATE_LIMIT", "60/minute")

limiter = Limiter(
    key_func=get_remote_address,
    enabled=_enabled,
    headers_enabled=False,
)
