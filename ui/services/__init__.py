# ============================================================================
# ui/services/__init__.py
# ============================================================================
"""
UI Service Layer

Connects Streamlit UI to the MediBill client core.
"""

from .client_service import ClientService, require_login

__all__ = ['ClientService', 'require_login']
