"""
Constants for attendance rules
"""

# Work site geofence radius bounds (meters)
SITE_RADIUS_MIN_METERS = 50
SITE_RADIUS_MAX_METERS = 500

# Correction requests
MIN_CORRECTION_REASON_LENGTH = 20

# Audit actor for scheduler jobs
SYSTEM_ACTOR = None

AUTO_CLOCKOUT_NOTE = "Auto-clocked out by system. Please submit correction if needed."
