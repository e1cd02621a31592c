"""
modules/smc/exceptions.py

SMC engine exceptions

Insufficient data is not an error here: detectors simply return empty
results until their window is filled.
"""

from typing import Any


class SMCError(Exception):
    """SMC engine base exception"""
    def __init__(self, message: str, component: str = None):
        self.component = component
        super().__init__(f"[{component}] {message}" if component else message)


class InvalidConfigurationError(SMCError):
    """
    Invalid configuration value

    Raised at engine construction, before any computation runs.
    e.g. swing_length=0, equal_tolerance=-0.1
    """
    def __init__(self, param_name: str, param_value: Any, reason: str = None):
        self.param_name = param_name
        self.param_value = param_value
        message = f"Invalid configuration '{param_name}' = {param_value!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message, "SMCConfig")


class NonMonotonicInputError(SMCError):
    """
    Candle time is not after the latest candle in history

    Accepting it would corrupt pivot-window confirmation, so the candle is
    rejected and the engine state is left untouched.
    """
    def __init__(self, previous_time: int, time: int, operation: str = "append"):
        self.previous_time = previous_time
        self.time = time
        self.operation = operation
        message = (
            f"Candle time {time} is not after the latest candle time {previous_time} ({operation})"
        )
        super().__init__(message, "SMCEngine")
