"""Record timed notes and export them as a Standard MIDI File.

:class:`MidiRecorder` collects note-on, note-off and pitch-bend events with
times in seconds from the start of recording. Frequencies are rounded to the
nearest MIDI note; the remaining deviation in cents is rendered as a pitch
bend (range +/- 2 semitones) so that just-intonation and quarter-tone scales
survive the trip through a 12-tone instrument. Because pitch bend is
per-channel, microtonal recordings rotate notes across the 15 melodic
channels; 12-tone recordings can stay on channel 0.

Export produces a single-track, format-0 file at 480 ticks per quarter note
using mido.

Example:
	```python
	recorder = MidiRecorder()
	recorder.start(0.0)
	recorder.record_note(440.0, time=0.0, duration=0.5, velocity=100)
	recorder.stop()
	data = recorder.export_bytes(tempo=120)
	```
"""

import dataclasses
import datetime
import io
import logging
import typing

import mido

import dennewitz.constants.midi
import dennewitz.constants.velocity
import dennewitz.scales


logger = logging.getLogger(__name__)

NOTE_ON = "note_on"
NOTE_OFF = "note_off"
PITCH_BEND = "pitch_bend"

# At equal timestamps: bend first so the note starts in tune, and release
# before re-striking.
EVENT_ORDER: typing.Dict[str, int] = {
	PITCH_BEND: 0,
	NOTE_OFF: 1,
	NOTE_ON: 2,
}


@dataclasses.dataclass(frozen=True)
class MicrotonalPitch:

	"""Nearest MIDI note, deviation from it in cents, and the 14-bit bend that corrects it."""

	note: int
	cents_off: float
	bend: int


@dataclasses.dataclass(frozen=True)
class TimedEvent:

	"""One recorded event. ``time`` is seconds since recording started."""

	kind: str
	channel: int
	note: int
	velocity: int
	bend: int
	time: float


def freq_to_midi (frequency: float) -> int:

	"""Nearest MIDI note for a frequency, clamped to 0-127."""

	return freq_to_microtonal_midi(frequency).note


def freq_to_microtonal_midi (frequency: float) -> MicrotonalPitch:

	"""Split a frequency into a MIDI note and a pitch-bend correction.

	Non-positive frequencies map to note 0 with no bend. Notes outside the
	MIDI range saturate, and so does the bend.

	Example:
		```python
		freq_to_microtonal_midi(440.0 * 2 ** (1 / 12))
		# MicrotonalPitch(note=70, cents_off=~0.0, bend=8192)
		```
	"""

	if frequency <= 0:
		return MicrotonalPitch(note=0, cents_off=0.0, bend=dennewitz.constants.midi.PITCH_BEND_CENTER)

	exact = dennewitz.scales.frequency_to_semitone(frequency)
	note = dennewitz.scales.clamp_pitch(dennewitz.scales.round_half_up(exact))
	cents_off = (exact - note) * 100

	bend_per_cent = dennewitz.constants.midi.PITCH_BEND_CENTER / (100 * dennewitz.constants.midi.PITCH_BEND_RANGE_SEMITONES)
	bend = dennewitz.constants.midi.PITCH_BEND_CENTER + dennewitz.scales.round_half_up(cents_off * bend_per_cent)
	bend = max(dennewitz.constants.midi.PITCH_BEND_MIN, min(dennewitz.constants.midi.PITCH_BEND_MAX, bend))

	return MicrotonalPitch(note=note, cents_off=cents_off, bend=bend)


def tempo_to_microseconds (tempo: float) -> int:

	"""Microseconds per quarter note for a tempo in BPM.

	Raises:
		ValueError: If the tempo is not positive or too slow to encode.
	"""

	if tempo <= 0:
		raise ValueError(f"Tempo must be positive, got {tempo}")

	microseconds = dennewitz.scales.round_half_up(dennewitz.constants.midi.MICROSECONDS_PER_MINUTE / tempo)

	if microseconds > dennewitz.constants.midi.MAX_TEMPO_MICROSECONDS:
		raise ValueError(f"Tempo {tempo} BPM is too slow to encode in a MIDI file")

	return microseconds


def seconds_to_ticks (seconds: float, tempo: float) -> int:

	"""Absolute tick position of a time in seconds."""

	return dennewitz.scales.round_half_up(seconds / 60 * tempo * dennewitz.constants.midi.TICKS_PER_BEAT)


def pitch_bend_range_messages (channel: int) -> typing.List[mido.Message]:

	"""RPN 0 messages setting the pitch-bend range on one channel."""

	return [
		mido.Message('control_change', channel=channel, control=dennewitz.constants.midi.CC_RPN_MSB, value=0),
		mido.Message('control_change', channel=channel, control=dennewitz.constants.midi.CC_RPN_LSB, value=0),
		mido.Message('control_change', channel=channel, control=dennewitz.constants.midi.CC_DATA_ENTRY_MSB, value=dennewitz.constants.midi.PITCH_BEND_RANGE_SEMITONES),
		mido.Message('control_change', channel=channel, control=dennewitz.constants.midi.CC_DATA_ENTRY_LSB, value=0),
	]


def _event_to_message (event: TimedEvent, delta: int) -> mido.Message:

	if event.kind == PITCH_BEND:
		return mido.Message('pitchwheel', channel=event.channel, pitch=event.bend - dennewitz.constants.midi.PITCH_BEND_CENTER, time=delta)

	if event.kind == NOTE_ON:
		return mido.Message('note_on', channel=event.channel, note=event.note, velocity=event.velocity, time=delta)

	return mido.Message('note_off', channel=event.channel, note=event.note, velocity=0, time=delta)


class MidiRecorder:

	"""Collect timed note events and serialise them to MIDI.

	The event log is cleared by :meth:`start`, appended to while recording,
	and read-only after :meth:`stop`. Recording and exporting must not
	overlap on the same instance.
	"""

	def __init__ (self, single_channel: bool = False) -> None:

		"""Create an idle recorder.

		Parameters:
			single_channel: Put every event on channel 0. Suitable for 12-tone
				material where no per-note pitch bend is needed.
		"""

		self.single_channel = single_channel
		self._events: typing.List[TimedEvent] = []
		self._start_time = 0.0
		self._active = False
		self._next_channel = 0
		self._channel_bends: typing.Dict[int, int] = {}

	@property
	def is_active (self) -> bool:
		return self._active

	@property
	def has_events (self) -> bool:
		return bool(self._events)

	@property
	def events (self) -> typing.Tuple[TimedEvent, ...]:

		"""The recorded events in recording order."""

		return tuple(self._events)

	def start (self, start_time: float = 0.0) -> None:

		"""Clear the log and channel allocator and begin recording.

		Parameters:
			start_time: The caller's clock at the start; recorded times are
				relative to it.
		"""

		self._events = []
		self._start_time = start_time
		self._next_channel = 0
		self._channel_bends = {}
		self._active = True

		logger.info(f"Recording started ({'single channel' if self.single_channel else 'multi-channel'})")

	def stop (self) -> None:

		"""Stop recording. The log is kept for export."""

		if self._active:
			logger.info(f"Recording stopped ({len(self._events)} events)")

		self._active = False

	def _allocate_channel (self) -> int:

		if self.single_channel:
			return 0

		channel = self._next_channel
		self._next_channel = (self._next_channel + 1) % dennewitz.constants.midi.NUM_CHANNELS

		if self._next_channel == dennewitz.constants.midi.PERCUSSION_CHANNEL:
			self._next_channel += 1

		return channel

	def record_note (self, frequency: float, time: float, duration: float, velocity: int) -> None:

		"""Record a note as a note-on/note-off pair, plus a pitch bend when it needs one.

		A bend is added when the frequency is more than half a cent from the
		nearest MIDI note, or when the channel is still bent from an earlier
		note. Ignored unless recording.

		Parameters:
			frequency: Pitch in Hz.
			time: Caller's clock at note start (same clock as :meth:`start`).
			duration: Length in seconds.
			velocity: MIDI velocity (saturated to 0-127).
		"""

		if not self._active:
			logger.debug("record_note() ignored - recorder is not active")
			return

		pitch = freq_to_microtonal_midi(frequency)
		channel = self._allocate_channel()
		start = time - self._start_time
		velocity = max(dennewitz.constants.velocity.MIN_VELOCITY, min(dennewitz.constants.velocity.MAX_VELOCITY, int(velocity)))
		current_bend = self._channel_bends.get(channel, dennewitz.constants.midi.PITCH_BEND_CENTER)

		if abs(pitch.cents_off) > dennewitz.constants.midi.BEND_THRESHOLD_CENTS or current_bend != dennewitz.constants.midi.PITCH_BEND_CENTER:
			bend = pitch.bend if abs(pitch.cents_off) > dennewitz.constants.midi.BEND_THRESHOLD_CENTS else dennewitz.constants.midi.PITCH_BEND_CENTER
			self._events.append(TimedEvent(PITCH_BEND, channel, pitch.note, 0, bend, start))
			self._channel_bends[channel] = bend

		self._events.append(TimedEvent(NOTE_ON, channel, pitch.note, velocity, dennewitz.constants.midi.PITCH_BEND_CENTER, start))
		self._events.append(TimedEvent(NOTE_OFF, channel, pitch.note, 0, dennewitz.constants.midi.PITCH_BEND_CENTER, start + duration))

	def build_midi_file (self, tempo: float) -> mido.MidiFile:

		"""Build a format-0 :class:`mido.MidiFile` from the recorded events.

		The track holds the tempo, a pitch-bend range setup for all 16
		channels, then every event in time order (pitch bend, then note-off,
		then note-on at equal times) as delta ticks, and an end-of-track
		marker.

		Raises:
			ValueError: If the tempo is not positive.
		"""

		microseconds = tempo_to_microseconds(tempo)

		mid = mido.MidiFile(type=0, ticks_per_beat=dennewitz.constants.midi.TICKS_PER_BEAT)
		track = mido.MidiTrack()
		mid.tracks.append(track)

		track.append(mido.MetaMessage('set_tempo', tempo=microseconds, time=0))

		for channel in range(dennewitz.constants.midi.NUM_CHANNELS):
			track.extend(pitch_bend_range_messages(channel))

		# Sort on whole ticks: within a tick, bend before note-off before note-on.
		timed = [(seconds_to_ticks(event.time, tempo), event) for event in self._events]
		ordered = sorted(timed, key=lambda pair: (pair[0], EVENT_ORDER[pair[1].kind]))
		previous_tick = 0

		for tick, event in ordered:
			delta = max(0, tick - previous_tick)
			previous_tick = tick
			track.append(_event_to_message(event, delta))

		track.append(mido.MetaMessage('end_of_track', time=0))

		return mid

	def export_bytes (self, tempo: float) -> bytes:

		"""Serialise the recording to Standard MIDI File bytes."""

		buffer = io.BytesIO()
		self.build_midi_file(tempo).save(file=buffer)

		return buffer.getvalue()

	def save (self, tempo: float, filename: typing.Optional[str] = None) -> str:

		"""Write the recording to a ``.mid`` file and return its name.

		Parameters:
			tempo: Tempo in BPM written into the file.
			filename: Target path (defaults to a timestamped name).
		"""

		if filename is None:
			now = datetime.datetime.now()
			filename = now.strftime("dennewitz_%Y%m%d_%H%M%S.mid")

		logger.info(f"Saving MIDI recording ({len(self._events)} events) to {filename}...")

		try:
			self.build_midi_file(tempo).save(filename)
		except OSError as e:
			logger.error(f"Failed to save MIDI recording: {e}")
			raise

		logger.info(f"Saved {filename}")

		return filename


def decode_notes (data: bytes) -> typing.List[typing.Tuple[int, int, int, int]]:

	"""Read note spans back from MIDI bytes.

	Returns:
		``(channel, note, start_tick, duration_ticks)`` for every note-on that
		has a matching note-off, ordered by start tick.
	"""

	mid = mido.MidiFile(file=io.BytesIO(data))
	open_notes: typing.Dict[typing.Tuple[int, int], typing.List[int]] = {}
	spans: typing.List[typing.Tuple[int, int, int, int]] = []
	tick = 0

	for message in mid.tracks[0]:

		tick += message.time

		if message.type == 'note_on' and message.velocity > 0:
			open_notes.setdefault((message.channel, message.note), []).append(tick)

		elif message.type == 'note_off' or (message.type == 'note_on' and message.velocity == 0):
			starts = open_notes.get((message.channel, message.note))
			if starts:
				start = starts.pop(0)
				spans.append((message.channel, message.note, start, tick - start))

	spans.sort(key=lambda s: s[2])

	return spans
