from .refresh import RefreshScheduler

__all__ = [
    "RefreshScheduler"
]
