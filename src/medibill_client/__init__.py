# ============================================================================
# src/medibill_client/__init__.py
# ============================================================================
"""
MediBill client

Session handling, transport normalization and local dashboard statistics for
the MediBill medical-bill analysis service.
"""

__version__ = "0.1.0"
