"""
UWB positioning configuration.
"""

# Room configuration (meters)
ROOM_CONFIG = {
    "width": 10.0,
    "height": 8.0,
}

# Anchor configuration
ANCHOR_CONFIG = {
    "positioning_ids": [0, 1, 2],     # anchor0, anchor1, anchor2 in layout order
    "auxiliary_id": 3,                # proximity anchor (None to disable)
    "take_auxiliary_with_set": False, # True: a fix also waits for the auxiliary anchor
    "d01": 6.0,                       # anchor0 - anchor1 (m)
    "d02": 6.0,                       # anchor0 - anchor2 (m)
    "d12": 6.0,                       # anchor1 - anchor2 (m)
}

# Proximity thresholds (cm, inclusive)
PROXIMITY_CONFIG = {
    "found_cm": 30,
    "close_cm": 70,
    "near_cm": 100,
    "far_cm": 200,
}

# Serial transport
SERIAL_CONFIG = {
    "port": "/dev/ttyUSB0",           # "COM7" etc. on Windows
    "baud_rate": 3_000_000,
    "timeout_s": 0.2,
}

# Telemetry parser
PARSER_CONFIG = {
    "marker": "INFO :",
    "record_tokens": ["TWR", "TAG"],
}

# Output configuration
OUTPUT_CONFIG = {
    "clamp_to_room": True,            # clamp printed fixes to the room
    "print_proximity": True,
    "print_failures": True,
}

# Logging configuration
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}
