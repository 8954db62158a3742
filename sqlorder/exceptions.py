"""Core exceptions for SQLOrder."""

from typing import Any, Dict, Optional


class SQLOrderError(Exception):
    """Base exception for all SQLOrder errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SQLOrderError):
    """Raised when there's an error in configuration parsing or validation."""
    pass


class DatabaseError(SQLOrderError):
    """Raised when there's an error connecting to or querying a database."""
    
    def __init__(
        self, 
        message: str, 
        database_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.database_type = database_type


class QueryError(SQLOrderError):
    """Raised when a filter, ordering or identifier cannot be turned into SQL."""
    
    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.identifier = identifier


class PositionError(SQLOrderError):
    """Raised when a position operation receives invalid arguments."""
    
    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.table = table
