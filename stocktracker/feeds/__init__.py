"""Price feed adapters."""

from .base import BasePriceFeed
from .yahoo import YahooPriceFeed

__all__ = [
    "BasePriceFeed",
    "YahooPriceFeed",
]
