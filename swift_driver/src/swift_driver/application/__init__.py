"""Application layer: the driver facade and its construction."""

from swift_driver.application.factory import (
    InvalidParametersError,
    detect_capabilities,
    from_parameters,
    new_driver,
)
from swift_driver.application.swift_driver import SwiftDriver

__all__ = [
    "SwiftDriver",
    "InvalidParametersError",
    "detect_capabilities",
    "from_parameters",
    "new_driver",
]
