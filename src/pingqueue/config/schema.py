"""Config schema re-export and validation helpers for pingqueue.

Re-exports ``UploaderConfig`` so that ``pingqueue.config`` is a complete
import path for consumers who prefer not to reach into ``pingqueue.schema``.
"""
from __future__ import annotations

from pydantic import ValidationError

from pingqueue.schema.config import UploaderConfig
from pingqueue.schema.errors import ConfigurationError

__all__ = ["UploaderConfig", "validate_config"]


def validate_config(data: dict[str, object]) -> UploaderConfig:
    """Validate a raw dict against the ``UploaderConfig`` schema.

    Parameters
    ----------
    data:
        Unvalidated key/value mapping.

    Returns
    -------
    UploaderConfig
        Validated and typed configuration.

    Raises
    ------
    ConfigurationError
        If the data fails Pydantic validation.  The original
        ``ValidationError`` is attached as the ``__cause__``.

    Examples
    --------
    >>> validate_config({"log_pings": True}).log_pings
    True
    """
    try:
        return UploaderConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Configuration validation failed: {exc}",
            context={"errors": exc.errors()},
        ) from exc
