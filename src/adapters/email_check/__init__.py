"""Email-quality checker adapters - remote scoring services."""

from .abstract_api import AbstractApiEmailChecker

__all__ = ["AbstractApiEmailChecker"]
