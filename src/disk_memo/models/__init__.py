from .record import CacheResult, CacheStatus, Record

__all__ = ["CacheResult", "CacheStatus", "Record"]
