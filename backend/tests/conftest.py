import os

# Disable rate limiting for tests
os.environ["TAGTREE_NO_RATE_LIMIT"] = "true"
