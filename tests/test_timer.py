import pytest

from mobile.clipbooth.audio.timer import RecordingTimer, format_clock
from mobile.clipbooth.audio.types import RecordingSession, RecordingState


@pytest.mark.parametrize(
    "elapsed, text",
    [
        (0, "00:00"),
        (999, "00:00"),
        (59_999, "00:59"),
        (61_000, "01:01"),
        (99 * 60_000 + 59_000, "99:59"),
        (100 * 60_000 + 5_000, "100:05"),
        (-40, "00:00"),
    ],
)
def test_format_clock(elapsed, text):
    assert format_clock(elapsed) == text


def test_timer_ticks_only_while_recording(scheduler, clock):
    session = RecordingSession(started_at_ms=clock(), state=RecordingState.RECORDING)
    published = []
    timer = RecordingTimer(session, published.append, scheduler, clock=clock, interval=0.25)
    timer.start()
    assert scheduler.active[0].interval == 0.25

    clock.advance(1250)
    scheduler.run()
    assert published == ["00:00", "00:01"]
    assert session.duration_ms == 1250

    session.state = RecordingState.PAUSED
    session.paused_at_ms = clock()
    clock.advance(10_000)
    scheduler.run(3)
    assert published == ["00:00", "00:01"]


def test_finish_publishes_last_value_and_stops(scheduler, clock):
    session = RecordingSession(started_at_ms=clock(), state=RecordingState.RECORDING, accumulated_pause_ms=500)
    published = []
    timer = RecordingTimer(session, published.append, scheduler, clock=clock)
    timer.start()
    clock.advance(65_700)

    assert timer.finish() == 65_200
    assert published[-1] == "01:05"
    assert session.duration_ms == 65_200
    assert not timer.running
    assert scheduler.active == []


def test_elapsed_never_negative(clock):
    session = RecordingSession(started_at_ms=clock() + 500)
    assert session.elapsed_ms(clock()) == 0
