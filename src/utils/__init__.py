# ============================================================================
# src/utils/__init__.py
# ============================================================================
"""
Utility modules for the MediBill client.
"""

from .exceptions import (
    MediBillClientError,
    ConfigurationError,
    StorageError,
    TransportError,
)

from .logging import (
    setup_logging,
    setup_logging_from_settings,
    JsonFormatter,
    mask_token,
)

from .file_utils import (
    ensure_directory,
    read_json,
    write_json,
)

__all__ = [
    # Exceptions
    'MediBillClientError',
    'ConfigurationError',
    'StorageError',
    'TransportError',
    # Logging
    'setup_logging',
    'setup_logging_from_settings',
    'JsonFormatter',
    'mask_token',
    # File Utils
    'ensure_directory',
    'read_json',
    'write_json',
]
