import os

def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _int_setting(name, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

# Rating given to a profile the first time it is created.
DEFAULT_RATING = _int_setting("DEFAULT_RATING", 1000)

PENDING_MATCH_RATE_LIMIT = os.getenv("PENDING_MATCH_RATE_LIMIT") or "30/minute"
