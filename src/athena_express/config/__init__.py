"""Configuration helpers for the Athena client."""

from athena_express.config.settings import AthenaConfig, RetryPolicy

__all__ = ["AthenaConfig", "RetryPolicy"]
