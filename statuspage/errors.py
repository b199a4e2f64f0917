from __future__ import annotations


class StatusPageError(RuntimeError):
    pass


class ConfigurationError(StatusPageError):
    """Invalid settings or registry. Raised before any check is dispatched."""


class NotifierDeliveryError(StatusPageError):
    pass
