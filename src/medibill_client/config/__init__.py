# ============================================================================
# src/medibill_client/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .client_config import client_settings, ClientSettings
from .storage_config import storage_settings, StorageSettings
from .thresholds_config import threshold_settings, ThresholdSettings
from .logging_config import logging_settings, LoggingSettings
