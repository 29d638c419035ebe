"""Centralized event name constants.

This module defines all structured log event identifiers emitted by the
frame pipeline. Using constants avoids typos when emitting or filtering
events.
"""

# Admission control
FRAME_ADMITTED = "frame_admitted"
FRAME_DROPPED = "frame_dropped"

# Detection stage
DETECTION_FAILED = "detection_failed"

# Region processing
REGION_FAILED = "region_failed"

# Delivery
RESULT_DELIVERED = "result_delivered"
CONSUMER_FAILED = "consumer_failed"
STALE_RESULT = "stale_result"

# Dispatch thread
DISPATCH_FAILED = "dispatch_failed"

# Watchdog
WATCHDOG_RESET = "watchdog_reset"

# Configuration events
CONFIG_LOADED = "config_loaded"

# All events set for easy validation
ALL_EVENTS = {
    FRAME_ADMITTED,
    FRAME_DROPPED,
    DETECTION_FAILED,
    REGION_FAILED,
    RESULT_DELIVERED,
    CONSUMER_FAILED,
    STALE_RESULT,
    DISPATCH_FAILED,
    WATCHDOG_RESET,
    CONFIG_LOADED,
}

__all__ = [
    "FRAME_ADMITTED",
    "FRAME_DROPPED",
    "DETECTION_FAILED",
    "REGION_FAILED",
    "RESULT_DELIVERED",
    "CONSUMER_FAILED",
    "STALE_RESULT",
    "DISPATCH_FAILED",
    "WATCHDOG_RESET",
    "CONFIG_LOADED",
    "ALL_EVENTS",
]
