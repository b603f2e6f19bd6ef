"""Note lengths per treatment, in sequencer steps (sixteenth notes).

Multiply by the step length in seconds (``60 / tempo / 4``)::

    import dennewitz.constants.durations as dur

    duration = dur.CHORD_STEPS * step_seconds
"""

CHORD_STEPS = 2
LINE_STEPS = 3
ARPEGGIO_STEPS = 2
