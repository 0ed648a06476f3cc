"""Shared utilities for natsmock clients."""

from natsmock.shared.logger import get_client_logger
from natsmock.shared.config import ClientConfig

__all__ = ["get_client_logger", "ClientConfig"]
