"""Standard MIDI File constants.

The recorder writes format-0 files at a fixed resolution of 480 ticks per
quarter note. Channel 9 (zero-indexed) is the General MIDI percussion channel
and is never allocated to pitched notes.
"""

TICKS_PER_BEAT = 480
MICROSECONDS_PER_MINUTE = 60_000_000
MAX_TEMPO_MICROSECONDS = 0xFFFFFF

NUM_CHANNELS = 16
PERCUSSION_CHANNEL = 9

MIN_NOTE = 0
MAX_NOTE = 127

# 14-bit pitch wheel
PITCH_BEND_MIN = 0
PITCH_BEND_CENTER = 8192
PITCH_BEND_MAX = 16383
PITCH_BEND_RANGE_SEMITONES = 2

# Below this deviation a note is considered in tune and gets no bend.
BEND_THRESHOLD_CENTS = 0.5

# Registered Parameter Number 0 (pitch bend sensitivity).
CC_RPN_MSB = 101
CC_RPN_LSB = 100
CC_DATA_ENTRY_MSB = 6
CC_DATA_ENTRY_LSB = 38
