from voicecraft.metrics import render_latest
from voicecraft.practice.dictation import DictationSession


def test_metrics_exposition_includes_counters(scheduler, transport, synthesizer):
    session = DictationSession(["Hello."], transport, scheduler, synthesizer=synthesizer)
    session.start()
    session.submit("hello")

    payload, content_type = render_latest()

    assert content_type.startswith("text/plain")
    assert b"voicecraft_dictation_answers_total" in payload
    assert b'result="perfect"' in payload
