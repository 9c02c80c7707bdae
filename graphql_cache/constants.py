"""
GraphQL Cache Global Constants

Centralized location for defaults shared by configuration, key building
and the read-through engine.
"""

# Key construction
DEFAULT_NAMESPACE = "graphql"
KEY_SEPARATOR = ":"

# Expiry (90 minutes)
DEFAULT_EXPIRY_SECONDS = 5400

# Sanitization bounds
DEFAULT_MAX_DEPTH = 16
DEFAULT_STRICT_MAX_DEPTH = 8

# Field extension name carrying the cache directive
CACHE_EXTENSION = "cache"

# Execution context entry that forces recomputation
FORCE_CACHE_FLAG = "force_cache"

# Package metadata
APP_VERSION = "0.1.0"
