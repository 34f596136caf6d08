from .base import RandomnessSource, RandomWords
from .http_api import HttpBeaconSource
from .local import LocalRandomnessSource

__all__ = [
    "RandomnessSource",
    "RandomWords",
    "HttpBeaconSource",
    "LocalRandomnessSource",
]
