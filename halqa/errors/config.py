from logging import getLogger

from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from halqa.configs import file_logger
from halqa.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class ConfigurationError(BaseAppError):
    """Raised when a route needs a secret or URL that is not configured."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} is not configured", HTTP_500_INTERNAL_SERVER_ERROR)


config_exception_handler = create_exception_handler(logger)
