"""Módulo de autenticación para endpoints de operador."""

from .api_key import get_request_user, require_api_key

__all__ = [
    "get_request_user",
    "require_api_key",
]
