import pytest

from voicecraft.audio.types import PhraseTiming
from voicecraft.errors import EmptyInput
from voicecraft.practice.dictation import DictationConfig, DictationPhase, DictationSession
from voicecraft.practice.track import PracticeTrack, TimingSource


def _session(scheduler, transport, synthesizer, phrases=("The quick brown fox.", "Jumps over."), **kwargs):
    session = DictationSession(list(phrases), transport, scheduler, synthesizer=synthesizer, **kwargs)
    session.start()
    return session


def test_replay_budget_is_a_hard_limit(scheduler, transport, synthesizer):
    session = _session(scheduler, transport, synthesizer)
    assert session.state.replays_left == 3

    for _ in range(3):
        assert session.play() is True
        scheduler.run_tasks()

    assert session.state.replays_left == 0
    assert session.play() is False
    scheduler.run_tasks()
    assert len(synthesizer.calls) == 3
    assert session.state.replays_left == 0


def test_play_uses_speed_as_speaking_rate(scheduler, transport, synthesizer):
    session = _session(scheduler, transport, synthesizer, config=DictationConfig(playback_speed=0.75))

    session.play()
    scheduler.run_tasks()

    _, voice = synthesizer.calls[0]
    assert voice.speaking_rate == 0.75
    assert transport.rate == 1.0
    assert transport.playing
    assert transport.source.text == "The quick brown fox."


def test_synthesis_failure_refunds_replay(scheduler, transport, make_synthesizer):
    synthesizer = make_synthesizer(failures={"Hello."})
    session = _session(scheduler, transport, synthesizer, phrases=("Hello.",))
    events = []
    session.subscribe(lambda event, state: events.append(event))

    session.play()
    assert session.state.is_loading
    scheduler.run_tasks()

    assert session.state.replays_left == 3
    assert "refused" in session.state.last_error
    assert session.state.is_loading is False
    assert "synthesis_failed" in events
    assert session.state.phase is DictationPhase.AWAITING_ANSWER


def test_submit_then_next_resets_budget(scheduler, transport, synthesizer):
    session = _session(scheduler, transport, synthesizer)
    session.play()
    scheduler.run_tasks()

    result = session.submit("the quick brown fx")

    assert result.score == 88
    assert session.state.phase is DictationPhase.SHOWING_RESULT
    assert session.state.scores == [88]
    assert session.state.total_correct == 0
    assert session.submit("again") is None

    assert session.next() is True
    assert session.state.current_index == 1
    assert session.state.replays_left == 3
    assert session.state.last_result is None

    session.submit("Jumps over")
    assert session.state.total_correct == 1
    session.next()
    assert session.is_complete
    assert session.state.current_index == 2
    assert session.next() is False


def test_skip_records_zero_and_summary(scheduler, transport, synthesizer):
    session = _session(scheduler, transport, synthesizer)
    session.submit("The quick brown fox")
    session.next()
    session.skip()

    assert session.is_complete
    assert session.state.scores == [100, 0]
    summary = session.summary()
    assert summary.average_score == 50
    assert summary.total_correct == 1
    assert summary.phrase_count == 2
    assert summary.accuracy == pytest.approx(0.5)


def test_replay_reference_does_not_spend_budget(scheduler, transport, synthesizer):
    session = _session(scheduler, transport, synthesizer)
    assert session.replay_reference() is False

    session.play()
    scheduler.run_tasks()
    transport.advance(1.0)
    assert session.replay_reference() is True

    assert transport.playing
    assert session.state.replays_left == 2
    assert len(synthesizer.calls) == 1


def test_source_audio_stops_at_phrase_end(scheduler, transport):
    track = PracticeTrack(
        source="lesson.mp3",
        phrases=["One.", "Two."],
        timings=[PhraseTiming.span(0.0, 1.5), PhraseTiming.span(2.0, 4.0)],
        timing_source=TimingSource.ESTIMATE,
        duration=4.0,
    )
    session = DictationSession(None, transport, scheduler, track=track)
    session.start()
    session.submit("one")
    session.next()

    session.play()
    assert transport.position == 2.0
    assert transport.playing
    transport.advance(1.0)
    assert transport.playing
    transport.advance(1.0)
    assert transport.playing is False
    assert scheduler.pending == []


def test_stop_and_restart(scheduler, transport, synthesizer):
    session = _session(scheduler, transport, synthesizer)
    session.play()
    scheduler.run_tasks()
    clip = transport.source
    session.submit("The quick brown fox")

    summary = session.stop()

    assert summary.average_score == 100
    assert clip.released
    assert session.state.phase is DictationPhase.IDLE
    assert session.state.scores == []

    session.restart()
    assert session.state.phase is DictationPhase.AWAITING_ANSWER
    assert session.state.current_index == 0


def test_start_requires_phrases(scheduler, transport, synthesizer):
    session = DictationSession([], transport, scheduler, synthesizer=synthesizer)
    with pytest.raises(EmptyInput):
        session.start()


class BrokenSynthesizer:
    def __init__(self) -> None:
        self.calls = 0

    async def synthesize(self, text, voice):
        self.calls += 1
        raise RuntimeError("socket closed")


def test_play_while_loading_does_not_spend_budget(scheduler, transport, synthesizer):
    session = _session(scheduler, transport, synthesizer)

    assert session.play() is True
    assert session.play() is False
    assert session.replay_reference() is False
    scheduler.run_tasks()

    assert session.state.replays_left == 2
    assert len(synthesizer.calls) == 1
    assert transport.playing


def test_answering_clears_pending_load(scheduler, transport, synthesizer):
    session = _session(scheduler, transport, synthesizer)
    session.play()
    session.submit("the quick")

    assert session.state.is_loading is False
    scheduler.run_tasks()
    assert synthesizer.calls == []

    session.next()
    session.play()
    session.skip()
    assert session.state.is_loading is False
    assert scheduler.pending == []


def test_unexpected_synthesizer_error_is_refunded(scheduler, transport):
    session = _session(scheduler, transport, BrokenSynthesizer())

    session.play()
    scheduler.run_tasks()

    assert session.state.is_loading is False
    assert session.state.replays_left == 3
    assert session.state.last_error == "socket closed"
    assert session.play() is True
