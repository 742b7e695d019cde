from halqa.decorators.caching import cached, revalidates
from halqa.decorators.metrics import timed
from halqa.decorators.with_retry import RETRIABLE_EXCEPTIONS, with_retry

__all__ = [
    "RETRIABLE_EXCEPTIONS",
    "cached",
    "revalidates",
    "timed",
    "with_retry",
]
