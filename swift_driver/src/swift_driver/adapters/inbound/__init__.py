"""Inbound adapters for the Swift driver.

Provides a REST API over the logical filesystem operations.
"""

from swift_driver.adapters.inbound.rest_api import create_app

__all__ = ["create_app"]
