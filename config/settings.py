"""Application settings constants."""

from __future__ import annotations

import os

# Content provider selection: "youtube_api" (YouTube Data API v3) or "ytdlp" (keyless search).
CONTENT_PROVIDER = os.getenv("LESSONSCOUT_PROVIDER", "youtube_api").strip().lower()

# API key for the YouTube Data API provider. Missing key makes every search fail as unavailable.
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY") or None

# Per-request timeout applied to each provider call.
REQUEST_TIMEOUT_SECONDS = float(os.getenv("LESSONSCOUT_REQUEST_TIMEOUT_SECONDS", "10"))

# Minimum spacing between outbound provider requests.
MIN_INTERVAL_SECONDS = float(os.getenv("LESSONSCOUT_MIN_INTERVAL_SECONDS", "0.2"))

# Fallback pass bounds.
MAX_ALTERNATE_TERMS = int(os.getenv("LESSONSCOUT_MAX_ALTERNATE_TERMS", "4"))
MAX_PARALLEL_REQUESTS = int(os.getenv("LESSONSCOUT_MAX_PARALLEL_REQUESTS", "4"))

# Result sizes.
RESULTS_PER_QUERY = 15
MAX_COMBINED_RESULTS = 15

# Confidence a result needs before its query term is remembered in the pattern cache.
SUCCESS_CONFIDENCE = 80

# Pattern cache bounds.
PATTERN_CACHE_TERMS_PER_KEY = int(os.getenv("LESSONSCOUT_PATTERN_CACHE_TERMS", "10"))
PATTERN_CACHE_MAX_KEYS = int(os.getenv("LESSONSCOUT_PATTERN_CACHE_KEYS", "256"))

# Optional JSON file overriding the built-in search policy.
SEARCH_POLICY_PATH = os.getenv("LESSONSCOUT_SEARCH_POLICY") or None

LOG_LEVEL = os.getenv("LESSONSCOUT_LOG_LEVEL", "INFO").upper()
