"""
LSCS Core API
Member directory, web sessions, RBAC and API key issuance
"""

__version__ = "1.0.0"
