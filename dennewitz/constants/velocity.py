"""MIDI velocity constants.

Velocity is the MIDI attack strength (0-127).
"""

MIN_VELOCITY = 0
MAX_VELOCITY = 127

# Dynamics are computed as a 0-1 volume, then scaled by this to a base velocity.
VOLUME_TO_VELOCITY = 100
