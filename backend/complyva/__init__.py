"""Complyva - multi-tenant compliance register core"""

__version__ = "1.0.0"
