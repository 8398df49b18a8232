"""Utility functions for rhodibot."""

from rhodibot.utils.hashing import compute_hash, hash_dict, short_hash
from rhodibot.utils.logging import configure_logging, get_logger, get_logger_with_context
from rhodibot.utils.errors import (
    RhodibotError,
    OrchestrationError,
    SnapshotError,
    PolicyError,
    RegistryError,
    ScanTimeoutError,
    ScanCancelledError,
    OrphanViolationError,
    DocumentParseError,
    ConfigurationError,
    retry,
)
from rhodibot.utils.config import (
    RhodibotConfig,
    ScanConfig,
    PolicySource,
    OutputConfig,
    load_config,
    get_config_paths,
    get_default_config,
)

__all__ = [
    # Hashing
    "compute_hash",
    "hash_dict",
    "short_hash",
    # Logging
    "configure_logging",
    "get_logger",
    "get_logger_with_context",
    # Errors
    "RhodibotError",
    "OrchestrationError",
    "SnapshotError",
    "PolicyError",
    "RegistryError",
    "ScanTimeoutError",
    "ScanCancelledError",
    "OrphanViolationError",
    "DocumentParseError",
    "ConfigurationError",
    "retry",
    # Config
    "RhodibotConfig",
    "ScanConfig",
    "PolicySource",
    "OutputConfig",
    "load_config",
    "get_config_paths",
    "get_default_config",
]
