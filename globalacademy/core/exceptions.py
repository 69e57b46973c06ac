"""
Custom exceptions and error handling for the Global Academy content service
"""
from typing import Optional, Dict, Any


class GlobalAcademyError(Exception):
    """Base exception for the content service"""

    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(GlobalAcademyError):
    """Input validation error"""
    status_code = 400


class NotFoundError(GlobalAcademyError):
    """Referenced course, module or transcript does not exist"""
    status_code = 404


class LLMError(GlobalAcademyError):
    """Error during LLM operations"""
    status_code = 502


class TranslationBackendError(GlobalAcademyError):
    """Error returned by a translation backend"""
    status_code = 502


class CircuitOpenError(GlobalAcademyError):
    """Call rejected because the circuit breaker is open"""
    status_code = 503


class ConfigurationError(GlobalAcademyError):
    """Configuration error"""
    status_code = 500
