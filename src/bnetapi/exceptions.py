"""
Bnetapi-specific exceptions.
"""

from __future__ import annotations


class BattleNetAPIError(Exception):
    """
    Base class for every error raised by the library.
    """


class ConfigurationError(BattleNetAPIError, ValueError):
    """
    Invalid or missing setup.

    Notes
    -----
    Raised for bad regions and locales, non-callable completion handlers,
    non-numeric concurrency caps and malformed ``add_request`` arguments.
    """


class MissingParameterError(ConfigurationError):
    """
    An endpoint builder was called without one of its required parameters.
    """


class MissingCredentialError(BattleNetAPIError):
    """
    A send was attempted with no API key configured.
    """


class TransportUnavailableError(BattleNetAPIError):
    """
    No HTTP transport is available to issue requests with.
    """


class EmptyBatchError(BattleNetAPIError):
    """
    A send was attempted with zero queued requests.
    """


class EndpointResolutionError(BattleNetAPIError):
    """
    The requested service/endpoint combination has no registered builder.
    """
