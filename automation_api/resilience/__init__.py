"""Resiliencia: retry con backoff para conflictos de estado."""

from .retry import RetryConfig, RetryExecutor

__all__ = ["RetryConfig", "RetryExecutor"]
