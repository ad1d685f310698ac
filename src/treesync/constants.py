"""Constants for treesync."""

# Per-root marker directory holding configuration
TREESYNC_DIR = ".treesync"

# Configuration file (inside TREESYNC_DIR)
CONFIG_FILE = "config.yaml"

# Gitignore-style exclusion file at the walk root
IGNORE_FILE = ".treesyncignore"

# Read size for streamed hashing
HASH_CHUNK_SIZE = 8192

# Snapshot envelope format version
SNAPSHOT_FORMAT = 1

# Environment override for the worker pool size
MAX_WORKERS_ENV = "TREESYNC_MAX_WORKERS"
