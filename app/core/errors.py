"""
Error types raised by the integrations.

Both are raised after the webhook has been acknowledged, so they only ever end
processing of the current event; the pipeline logs them and moves on.
"""


class ConfigurationError(RuntimeError):
    """Missing or invalid credentials / instance configuration, detected at point of use."""


class ExternalCallError(RuntimeError):
    """
    A call to Google Sheets or Green API failed (network, quota, non-2xx).

    `detail` carries the provider response body when one was available.
    """

    def __init__(self, message: str, detail=None):
        super().__init__(message)
        self.detail = detail

    def __str__(self) -> str:
        base = super().__str__()
        if self.detail:
            return f"{base} (detail={self.detail})"
        return base
