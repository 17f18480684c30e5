"""
Tests for chunked speech output.
"""
from mock_interview.interview.speech_output import SpeechOutputAdapter, split_text
from mock_interview.interview.testing import FakeSynthesisEngine


def make_output(scheduler, **kwargs):
    synth = FakeSynthesisEngine()
    return SpeechOutputAdapter(synth, scheduler, **kwargs), synth


class TestSplitText:

    def test_unbroken_text_is_cut_at_chunk_size(self):
        chunks = split_text("A" * 450, 200)
        assert [len(c) for c in chunks] == [200, 200, 50]

    def test_prefers_word_boundaries(self):
        text = " ".join(f"word{i}" for i in range(100))
        chunks = split_text(text, 200)

        assert len(chunks) > 1
        assert all(len(c) <= 200 for c in chunks)
        assert " ".join(chunks) == text

    def test_empty_text(self):
        assert split_text("", 200) == []
        assert split_text("   ", 200) == []


class TestPlayback:

    def test_chunks_play_in_order_with_delay(self, scheduler):
        done = []
        output, synth = make_output(scheduler)

        output.speak("A" * 450, on_complete=lambda: done.append(True))
        assert synth.spoken == ["A" * 200]

        synth.finish()
        assert len(synth.spoken) == 1
        scheduler.advance(0.1)
        assert len(synth.spoken) == 2

        synth.finish()
        scheduler.advance(0.1)
        assert [len(c) for c in synth.spoken] == [200, 200, 50]
        assert done == []

        synth.finish()
        assert done == [True]
        assert output.speaking is False

    def test_cancel_drops_remaining_chunks(self, scheduler):
        done = []
        output, synth = make_output(scheduler)
        output.speak("A" * 450, on_complete=lambda: done.append(True))

        output.cancel()
        synth.finish()
        scheduler.advance(1.0)

        assert len(synth.spoken) == 1
        assert synth.cancel_count == 1
        assert done == []
        assert output.speaking is False

    def test_cancel_during_gap_between_chunks(self, scheduler):
        output, synth = make_output(scheduler)
        output.speak("A" * 450)
        synth.finish()

        output.cancel()
        scheduler.advance(1.0)

        assert len(synth.spoken) == 1
        assert scheduler.pending == 0

    def test_new_speak_replaces_current(self, scheduler):
        first_done = []
        second_done = []
        output, synth = make_output(scheduler)

        output.speak("first", on_complete=lambda: first_done.append(True))
        output.speak("second", on_complete=lambda: second_done.append(True))
        synth.finish()

        assert synth.spoken == ["first", "second"]
        assert first_done == []
        assert second_done == [True]

    def test_error_still_advances_and_completes(self, scheduler):
        done = []
        output, synth = make_output(scheduler, chunk_size=10)
        output.speak("aaaa bbbb cccc dddd", on_complete=lambda: done.append(True))

        synth.fail("audio-busy")
        scheduler.advance(0.1)
        assert synth.spoken == ["aaaa bbbb", "cccc dddd"]

        synth.fail("audio-busy")
        assert done == [True]

    def test_disabled_output_completes_immediately(self, scheduler):
        done = []
        output, synth = make_output(scheduler, enabled=False)

        output.speak("Feedback text", on_complete=lambda: done.append(True))

        assert done == [True]
        assert synth.spoken == []

    def test_unsupported_output_completes_immediately(self, scheduler):
        done = []
        output = SpeechOutputAdapter(None, scheduler)

        output.speak("Feedback text", on_complete=lambda: done.append(True))

        assert output.supported is False
        assert done == [True]

    def test_empty_text_completes_immediately(self, scheduler):
        done = []
        output, synth = make_output(scheduler)
        output.speak("", on_complete=lambda: done.append(True))
        assert done == [True]
        assert synth.spoken == []
