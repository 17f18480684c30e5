"""
Tests for the voice interview flow and voice chat.
"""
import pytest

from mock_interview.errors import GatewayError
from mock_interview.interview.models import Phase, RoundType
from mock_interview.interview.session import SessionController
from mock_interview.interview.speech_input import SpeechInputAdapter
from mock_interview.interview.speech_output import SpeechOutputAdapter
from mock_interview.interview.testing import (
    FakeRecognitionEngine, FakeSynthesisEngine, MockGateway, create_mock_interview
)
from mock_interview.interview.voice import (
    CHAT_FALLBACK_REPLY, VoiceChatPanel, VoiceInterviewFlow, voice_submitter
)


class VoiceRig:
    """A voice flow wired to fakes."""

    def __init__(self, scheduler, event_bus, count=2, scores=None, recognizer=True, synthesizer=True,
                 auto_speak=True):
        self.scheduler = scheduler
        self.gateway = MockGateway(scores=scores or [82, 67])
        self.completed = []
        self.controller = SessionController(
            create_mock_interview(RoundType.BEHAVIORAL, count=count),
            voice_submitter(self.gateway), event_bus=event_bus, scheduler=scheduler,
            on_complete=self.completed.append,
        )
        self.recognizer = FakeRecognitionEngine() if recognizer else None
        self.synth = FakeSynthesisEngine() if synthesizer else None
        self.output = SpeechOutputAdapter(self.synth, scheduler)
        self.input = SpeechInputAdapter(self.recognizer, self.controller.notifier, self.output)
        self.flow = VoiceInterviewFlow(self.controller, self.input, self.output, scheduler,
                                       auto_speak=auto_speak)


@pytest.fixture
def rig(scheduler, event_bus):
    return VoiceRig(scheduler, event_bus)


class TestVoiceInterviewFlow:

    def test_start_announces_first_question(self, rig):
        rig.flow.start()
        assert rig.synth.spoken == ["Question 1: Question text 1"]

    def test_spoken_answer_is_submitted_and_feedback_read(self, rig):
        rig.flow.start()

        assert rig.flow.start_answer()
        rig.recognizer.emit(final="I led the migration", interim=" to")
        assert rig.flow.stop_answer() == "I led the migration"
        feedback = rig.flow.submit()

        assert feedback.score == 82
        assert rig.gateway.calls_to("submit_voice_answer") == [
            (1, "Question text 1", "I led the migration")
        ]
        assert rig.synth.spoken[-1] == "Spoken feedback for question 1"
        assert rig.controller.phase == Phase.REVIEWING

    def test_advances_after_feedback_then_announces(self, rig):
        rig.flow.start()
        rig.flow.type_answer("Typed answer")
        rig.flow.submit()

        rig.synth.finish()
        assert rig.controller.current_index == 1
        assert rig.synth.spoken[-1] == "Spoken feedback for question 1"

        rig.scheduler.advance(0.5)
        assert rig.synth.spoken[-1] == "Question 2: Question text 2"

    def test_submit_while_recording_uses_captured_text(self, rig):
        rig.flow.start()
        rig.flow.start_answer()
        rig.recognizer.emit(final="Answer by voice")

        rig.flow.submit()

        assert rig.input.capturing is False
        assert rig.gateway.calls_to("submit_voice_answer")[0][2] == "Answer by voice"

    def test_last_answer_completes_without_announcement(self, rig):
        rig.flow.start()
        for answer in ("First", "Second"):
            rig.flow.type_answer(answer)
            rig.flow.submit()
            rig.synth.finish()
            rig.scheduler.advance(0.5)

        assert rig.controller.phase == Phase.COMPLETE
        assert len(rig.completed) == 1
        assert [f.score for f in rig.flow.bundle.feedbacks] == [82, 67]
        assert rig.synth.spoken[-1] == "Spoken feedback for question 2"

    def test_without_auto_speak_advances_immediately(self, scheduler, event_bus):
        rig = VoiceRig(scheduler, event_bus, auto_speak=False)
        rig.flow.start()
        rig.flow.type_answer("Quiet answer")

        rig.flow.submit()
        scheduler.advance(0.5)

        assert rig.controller.current_index == 1
        assert rig.synth.spoken == []

    def test_empty_answer_is_not_submitted(self, rig, notifications):
        rig.flow.start()

        assert rig.flow.submit() is None
        assert rig.gateway.calls == []
        assert notifications[-1].title == "No Answer"

    def test_failed_submit_keeps_question(self, rig, notifications):
        rig.gateway.fail_with["submit_voice_answer"] = GatewayError("Evaluation service down")
        rig.flow.start()
        rig.flow.type_answer("An answer")

        assert rig.flow.submit() is None
        assert rig.controller.current_index == 0
        assert rig.controller.phase == Phase.ANSWERING
        assert notifications[-1].title == "Submission failed"

    def test_skip_moves_on_and_announces(self, rig):
        rig.flow.start()

        assert rig.flow.skip() is None

        assert rig.controller.current_index == 1
        assert rig.synth.spoken[-1] == "Question 2: Question text 2"

    def test_skip_while_feedback_is_read(self, rig):
        rig.flow.start()
        rig.flow.type_answer("Answer")
        rig.flow.submit()

        rig.flow.skip()

        assert rig.controller.current_index == 1
        assert rig.controller.state.slots[0].feedback is not None
        # The interrupted feedback must not advance the session a second time
        rig.scheduler.advance(1.0)
        assert rig.controller.current_index == 1

    def test_second_submit_while_feedback_is_read_is_ignored(self, rig, notifications):
        rig.flow.start()
        rig.flow.type_answer("Answer")
        rig.flow.submit()

        assert rig.flow.submit() is None

        assert len(rig.gateway.calls_to("submit_voice_answer")) == 1
        assert rig.controller.phase == Phase.REVIEWING
        assert notifications[-1].title == "Already Submitted"

    def test_feedback_finishing_after_skip_does_not_skip_again(self, scheduler, event_bus):
        rig = VoiceRig(scheduler, event_bus, count=3, scores=[82, 67, 71])
        rig.flow.start()
        rig.flow.type_answer("Answer")
        rig.flow.submit()

        rig.flow.skip()
        # Completion of the feedback speech arriving late from the playback thread
        rig.flow._advance_after(0)
        scheduler.advance(1.0)

        assert rig.controller.current_index == 1
        assert rig.controller.phase == Phase.ANSWERING

    def test_missing_capabilities_are_reported(self, scheduler, event_bus, notifications):
        rig = VoiceRig(scheduler, event_bus, recognizer=False, synthesizer=False)

        rig.flow.start()
        rig.flow.type_answer("Typed instead")
        rig.flow.submit()

        titles = [n.title for n in notifications]
        assert "Speech Recognition Not Supported" in titles
        assert "Speech Output Unavailable" in titles
        assert rig.controller.current_index == 1

    def test_turning_off_auto_speak_stops_playback(self, rig):
        rig.flow.start()
        rig.flow.auto_speak = False
        assert rig.synth.cancel_count == 1
        assert rig.output.speaking is False

    def test_stop_exits_session(self, rig, scheduler):
        rig.flow.start()
        rig.flow.stop()
        assert scheduler.pending == 0


class TestVoiceChatPanel:

    @pytest.fixture
    def chat(self, rig):
        return VoiceChatPanel(rig.gateway, rig.controller.notifier, rig.input, rig.output, interview_id=7)

    def test_reply_is_recorded_and_spoken(self, chat, rig):
        reply = chat.send_message("  What is a good STAR answer? ")

        assert reply == "Happy to help with that."
        assert [(m.role, m.content) for m in chat.history] == [
            ("user", "What is a good STAR answer?"),
            ("assistant", "Happy to help with that."),
        ]
        assert rig.synth.spoken[-1] == "Happy to help with that."
        assert rig.gateway.calls_to("chat") == [("What is a good STAR answer?", 7)]

    def test_failure_uses_fallback_reply(self, chat, rig, notifications):
        rig.gateway.fail_with["chat"] = GatewayError("upstream down")

        reply = chat.send_message("Hello?")

        assert reply == CHAT_FALLBACK_REPLY
        assert chat.history[-1].content == CHAT_FALLBACK_REPLY
        assert chat.processing is False
        assert notifications[-1].title == "Chat Error"

    def test_empty_message(self, chat, rig, notifications):
        assert chat.send_message("   ") is None
        assert chat.history == []
        assert notifications[-1].title == "Empty Message"

    def test_spoken_message_sends_final_text_only(self, chat, rig):
        chat.start_recording()
        rig.recognizer.emit(final="What is", interim=" a heap")

        chat.stop_recording()

        assert rig.gateway.calls_to("chat") == [("What is", 7)]
