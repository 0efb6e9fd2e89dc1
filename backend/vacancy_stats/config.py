# vacancy_stats/config.py
# Env-backed defaults; components take them as constructor arguments.

import os

from dotenv import load_dotenv

load_dotenv()

# ======================================================
#  UPSTREAM (JobTech historical search API)
# ======================================================
JOBTECH_BASE_URL: str = os.getenv(
    "JOBTECH_BASE_URL", "https://historical.api.jobtechdev.se"
).rstrip("/")

# Country-level filter used when no region is requested (Sweden)
SWEDEN_COUNTRY_CODE: str = "199"

# Seconds allowed for one upstream call, retries included
REQUEST_TIMEOUT: float = float(os.getenv("JOBTECH_REQUEST_TIMEOUT", "20"))
RETRY_ATTEMPTS: int = int(os.getenv("JOBTECH_RETRY_ATTEMPTS", "3"))
MAX_CONCURRENT_REQUESTS: int = int(os.getenv("JOBTECH_MAX_CONCURRENT_REQUESTS", "16"))

USER_AGENT: str = "vacancy-stats/0.1"

# ======================================================
#  CACHES
# ======================================================
DAY_SECONDS: int = 3600 * 24

# Monthly history does not change once published
RESPONSE_CACHE_TTL: int = int(os.getenv("RESPONSE_CACHE_TTL", str(DAY_SECONDS * 30)))

CUTOFF_CACHE_TTL: int = int(os.getenv("CUTOFF_CACHE_TTL", str(DAY_SECONDS * 7)))

# ======================================================
#  CUTOFF DETECTION
# ======================================================
# Counts at or below this are treated as "no data yet", not as a real month
VALID_DATA_THRESHOLD: int = 10
DETECTION_WINDOW_MONTHS: int = 12

# ======================================================
#  DASHBOARD DEFAULTS
# ======================================================
DEFAULT_RANGE_MONTHS: int = 12
