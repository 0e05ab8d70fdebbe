"""Constants for merklehash."""

# Configuration (under the user's home directory)
CONFIG_DIR_NAME = ".config/merklehash"
CONFIG_FILE = "config.yaml"

# Environment variable overrides
ENV_PREFIX = "MERKLEHASH_"

# Exit codes
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130

# Version
MERKLEHASH_VERSION = "0.1.0"
