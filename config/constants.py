"""Default configuration values."""

import os

CONFIG_ENV = "FACECROP_CONFIG"
CONFIG_PATH = os.getenv(CONFIG_ENV, "config.json")

LENS_FRONT = "front"
LENS_BACK = "back"

DEFAULT_CONFIG = {
    "mask_detection_enabled": True,
    # (width, height) of analysis frames; portrait like the device preview
    "target_resolution": [480, 640],
    "lens_facing": LENS_FRONT,
    "detection_workers": 2,
    "region_workers": 1,
    # seconds before a stuck frame is force-released, 0 disables
    "watchdog_timeout": 5.0,
    "watchdog_interval": 0.5,
    "crop_margin": 0.0,
    "min_face_size": 0,
    "similarity_thresh": 0.6,
}

__all__ = [
    "CONFIG_ENV",
    "CONFIG_PATH",
    "LENS_FRONT",
    "LENS_BACK",
    "DEFAULT_CONFIG",
]
