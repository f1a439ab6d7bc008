"""
Redis configuration.
"""

# Key prefixes for each kind of cached data
KEY_PREFIXES = {
    "analytics": "analytics:",
    "live_state": "state:",
    "preferences": "prefs:",
}

# Seconds before a cached entry expires; analytics use the analytics_refresh interval
EXPIRATION = {
    "live_state": 600,
}
