from .client import MicropredictionClient

__all__ = ['MicropredictionClient']
