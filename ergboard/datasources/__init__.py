from .base import ResultsSource
from .concept2 import Concept2DataSource
from .oauth import Concept2OAuthClient

__all__ = [
    "ResultsSource",
    "Concept2DataSource",
    "Concept2OAuthClient",
]
