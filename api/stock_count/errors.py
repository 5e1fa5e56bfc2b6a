# stock_count/errors.py
"""
Error taxonomy shared by services and routers.

Every error carries the HTTP status it is reported with; the app renders
them as ``{"error": message}``.
"""
from __future__ import annotations


class StockCountError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StockCountError):
    status_code = 400


class AuthorizationError(StockCountError):
    status_code = 401


class NotFoundError(StockCountError):
    status_code = 404


class UnsupportedMethodError(StockCountError):
    status_code = 405


class StorageUnavailableError(StockCountError):
    """Blob namespace unreachable or misconfigured."""
    status_code = 500
