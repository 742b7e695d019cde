from halqa.data.statistics import CacheStatistics

__all__ = ["CacheStatistics"]
