"""
Terminal front end: wires the services, session and speech adapters together.
"""
import logging
from typing import Callable, Dict, List, Optional

from ..config import Config, get_config
from ..errors import (
    CapabilityUnavailableError, InterviewClientError, SessionStateError, ValidationError
)
from ..infrastructure.api import RemoteGateway, AuthSession, User
from ..infrastructure.speech import SpeechCapabilityProvider
from ..infrastructure.timers import Scheduler, ThreadingScheduler
from ..utils import setup_logging
from .models import Feedback, Interview, InterviewBundle, Phase
from .events import (
    SessionEventBus, EventLogger, SessionMetrics, EventType, NotificationEvent, SessionEvent
)
from .services import (
    AuthService, InterviewSetupService, ResumeService, HistoryService, answer_submitter
)
from .session import SessionController
from .code_panel import CodeExecutionPanel, LANGUAGES, render_result
from .speech_input import SpeechInputAdapter
from .speech_output import SpeechOutputAdapter
from .voice import VoiceInterviewFlow, VoiceChatPanel, voice_submitter
from .results import InterviewReport

logger = logging.getLogger("orchestrator")

TEXT_HELP = """Commands:
  (type)        add a line to your answer
  :submit       submit the current answer
  :revise       answer a reviewed question again
  :next         go to the next question (or finish)
  :prev         go to the previous question
  :goto N       jump to question N
  :skip         move on without answering
  :quit         leave the interview"""

CODING_HELP = TEXT_HELP + """
  :run          run the code remotely
  :lang X       switch language ({languages})
  :stdin        enter program input, ending with a line containing :end
  :show         print the current code buffer
  :template     reset the buffer to the language template"""

VOICE_HELP = """Commands:
  (type)        type your answer instead of speaking
  :record       start recording your answer
  :stop         stop recording
  :submit       submit the answer and hear the feedback
  :skip         move on without answering
  :repeat       read the question again
  :speak on|off toggle automatic speech
  :chat TEXT    ask the assistant something
  :listen       speak a message to the assistant (:send to finish)
  :quit         leave the interview"""


class InterviewOrchestrator:
    """
    Mock interview client driven from the terminal.

    Everything user-facing goes through the event bus: errors become
    notifications and are printed here, so no single failure ends the session.
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 gateway: Optional[RemoteGateway] = None,
                 speech_provider: Optional[SpeechCapabilityProvider] = None,
                 scheduler: Optional[Scheduler] = None,
                 use_tts: bool = True,
                 input_fn: Callable[[str], str] = input,
                 configure_logging: bool = True):
        self.config = config or get_config()
        self.log_file = self.config.log_file
        if configure_logging:
            setup_logging(self.log_file, self.config.log_level)

        # Event system
        self.event_bus = SessionEventBus()
        self.event_logger = EventLogger()
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)
        self.event_bus.subscribe(EventType.NOTIFICATION, self._print_notification)

        # Backend access
        self.auth_session = AuthSession(self.config.session_file)
        if gateway is None:
            self.auth_session.load()
            gateway = RemoteGateway(self.auth_session, self.config.api_base_url, self.config.request_timeout)
        else:
            self.auth_session = gateway.session
        self.gateway = gateway

        self.auth = AuthService(self.gateway, self.auth_session)
        self.setup = InterviewSetupService(self.gateway)
        self.resumes = ResumeService(self.gateway)
        self.history = HistoryService(self.gateway, self.config.reports_dir)

        self.scheduler = scheduler or ThreadingScheduler()
        self._speech_provider = speech_provider
        self.use_tts = use_tts and self.config.enable_tts
        self.input_fn = input_fn

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _print_notification(event: SessionEvent) -> None:
        if not isinstance(event, NotificationEvent):
            return
        icon = "❌" if event.is_error else "🔔"
        detail = f": {event.description}" if event.description else ""
        print(f"{icon} {event.title}{detail}")

    def _report_error(self, error: InterviewClientError, title: str = "Something went wrong") -> None:
        if isinstance(error, ValidationError):
            title = error.title
        logger.error(f"{title}: {error}")
        print(f"❌ {title}: {error}")

    def _read(self, prompt: str = "> ") -> Optional[str]:
        try:
            return self.input_fn(prompt)
        except EOFError:
            return None

    # ------------------------------------------------------------------
    # Account and history
    # ------------------------------------------------------------------

    @property
    def user(self) -> Optional[User]:
        return self.auth_session.user

    def login(self, email: str, password: str) -> bool:
        try:
            user = self.auth.login(email, password)
        except InterviewClientError as e:
            self._report_error(e, "Login failed")
            return False
        print(f"👋 Welcome back, {user.name}!")
        return True

    def register(self, name: str, email: str, password: str) -> bool:
        try:
            user = self.auth.register(name, email, password)
        except InterviewClientError as e:
            self._report_error(e, "Registration failed")
            return False
        print(f"🎉 Account created. Welcome, {user.name}!")
        return True

    def logout(self) -> None:
        self.auth.logout()
        print("👋 Logged out")

    def show_history(self) -> bool:
        try:
            interviews = self.history.list()
        except InterviewClientError as e:
            self._report_error(e, "Could not load history")
            return False
        summary = self.history.summarize(interviews)
        print(f"\n📚 {summary.total_interviews} interview(s), average score {summary.average_score}%")
        for item in interviews:
            score = f"{item.average_score:.0f}%" if item.average_score is not None else "-"
            when = f"  {item.created_at}" if item.created_at else ""
            print(f"  #{item.id}  {item.job_title or '(untitled)'}  "
                  f"[{item.round_type or 'BEHAVIORAL'}]  {score}{when}")
        return True

    def download_report(self, interview_id: str) -> Optional[str]:
        try:
            path = self.history.download_report(interview_id)
        except (InterviewClientError, OSError) as e:
            print(f"❌ Download failed: {e}")
            logger.error(f"Report download failed for {interview_id}: {e}")
            return None
        print(f"📄 Report saved to {path}")
        return path

    def upload_resume(self, path: str) -> bool:
        try:
            self.resumes.upload(path)
        except InterviewClientError as e:
            self._report_error(e, "Upload failed")
            return False
        print("📎 Resume uploaded!")
        return True

    def show_resumes(self) -> bool:
        try:
            resumes = self.resumes.list()
        except InterviewClientError as e:
            self._report_error(e, "Could not load resumes")
            return False
        print(f"📎 {len(resumes)} resume(s) on file")
        for resume in resumes:
            name = resume.get("fileName") or resume.get("name") or "(unnamed)"
            print(f"   #{resume.get('id', '?')}  {name}")
        return True

    def analyze_resume(self, path: str, job_description: Optional[str] = None) -> bool:
        try:
            analysis = self.resumes.analyze(path, job_description)
        except InterviewClientError as e:
            self._report_error(e, "Analysis failed")
            return False
        print("\n" + "=" * 50)
        print("📋 RESUME ANALYSIS")
        print("=" * 50)
        if analysis.overall_score is not None:
            print(f"🔢 Overall Score: {analysis.overall_score:.0f}/100")
        if analysis.summary:
            print(f"📝 {analysis.summary}")
        for title, items in (("💪 Strengths", analysis.strengths),
                             ("🛠️  Improvements", analysis.improvements),
                             ("🔑 Keywords", analysis.keywords)):
            if items:
                print(title)
                for item in items:
                    print(f"   - {item}")
        return True

    # ------------------------------------------------------------------
    # Interviews
    # ------------------------------------------------------------------

    def run(self, job_title: str, round_type: str, job_description: str = "",
            voice: bool = False) -> Optional[InterviewReport]:
        """
        Start an interview and run it to the end.

        Returns:
            The results report, or None if the interview did not start or was abandoned
        """
        try:
            interview = self.setup.start(job_title, round_type, job_description)
        except InterviewClientError as e:
            self._report_error(e, "Failed to start interview")
            return None

        print(f"\n🎙️  {interview.job_title or job_title}: {len(interview.questions)} questions "
              f"({interview.round_type.value})")
        print(f"📝 Detailed logs: {self.log_file}")
        print("=" * 50)

        if voice:
            try:
                provider = self._create_speech_provider()
            except CapabilityUnavailableError as e:
                print(f"⚠️  {e} Continuing with a typed interview.")
                voice = False
        if voice:
            bundle = self._run_voice(interview, provider)
        else:
            bundle = self._run_text(interview)
        if bundle is None:
            print("🚪 Interview ended early")
            return None

        report = InterviewReport.from_bundle(bundle)
        self._display_results(report)
        return report

    def _print_question(self, controller: SessionController) -> None:
        index = controller.current_index
        total = len(controller.state.questions)
        print(f"\n❓ Question {index + 1}/{total}  ({controller.state.progress:.0f}%)  "
              f"⏱️  {controller.elapsed_display}")
        print(f"   {controller.current_question.text}")
        feedback = controller.state.current_slot.feedback
        if controller.phase == Phase.REVIEWING and feedback is not None:
            self._print_feedback(feedback)

    @staticmethod
    def _print_feedback(feedback: Feedback) -> None:
        print(f"📊 Score: {feedback.score}/100")
        print(f"💬 {feedback.explanation}")

    def _run_text(self, interview: Interview) -> Optional[InterviewBundle]:
        controller = SessionController(interview, answer_submitter(self.gateway),
                                       event_bus=self.event_bus, scheduler=self.scheduler,
                                       code_language=self.config.code_language)
        coding = interview.round_type.is_coding
        panel = CodeExecutionPanel(self.gateway, controller, timeout=self.config.code_execution_timeout) \
            if coding else None
        print(CODING_HELP.format(languages=", ".join(LANGUAGES)) if coding else TEXT_HELP)

        controller.start()
        draft: List[str] = []
        self._enter_question(controller, panel, draft)
        try:
            while True:
                line = self._read()
                if line is None or line.strip() == ":quit":
                    controller.exit()
                    return None
                command, _, arg = line.strip().partition(" ")

                if not line.startswith(":"):
                    if controller.phase == Phase.REVIEWING:
                        print("ℹ️  This question already has feedback. Use :revise to answer again.")
                        continue
                    draft.append(line)
                    if panel:
                        panel.set_code("\n".join(draft))
                    else:
                        controller.update_answer("\n".join(draft))
                    continue

                try:
                    bundle = self._handle_text_command(controller, panel, command, arg, draft)
                except SessionStateError as e:
                    print(f"⚠️  {e}")
                    continue
                if bundle is not None:
                    return bundle
        finally:
            controller.teardown()
            if panel:
                panel.close()

    def _enter_question(self, controller: SessionController, panel: Optional[CodeExecutionPanel],
                        draft: List[str]) -> None:
        slot = controller.state.current_slot
        draft[:] = slot.raw_answer.splitlines() if slot.raw_answer else []
        if panel:
            panel.load(slot.raw_answer, slot.language)
        self._print_question(controller)
        if panel and not slot.raw_answer:
            print(f"🧩 {LANGUAGES[panel.language]} template loaded. Type your solution; :show to view it.")

    def _handle_text_command(self, controller: SessionController, panel: Optional[CodeExecutionPanel],
                             command: str, arg: str, draft: List[str]) -> Optional[InterviewBundle]:
        if command == ":submit":
            print("⏳ Evaluating...")
            feedback = panel.submit() if panel else controller.submit()
            if feedback is not None:
                self._print_feedback(feedback)
                print("➡️  :next to continue")
        elif command == ":revise":
            controller.revise()
            print("✏️  Type your new answer, then :submit")
        elif command == ":next":
            bundle = controller.next()
            if bundle is not None:
                return bundle
            self._enter_question(controller, panel, draft)
        elif command == ":prev":
            controller.previous()
            self._enter_question(controller, panel, draft)
        elif command == ":goto":
            try:
                controller.jump_to(int(arg) - 1)
            except (ValueError, IndexError):
                print(f"⚠️  Use :goto 1-{len(controller.state.questions)}")
                return None
            self._enter_question(controller, panel, draft)
        elif command == ":skip":
            bundle = controller.skip()
            if bundle is not None:
                return bundle
            self._enter_question(controller, panel, draft)
        elif panel and command == ":run":
            self._run_code(panel)
        elif panel and command == ":lang":
            try:
                panel.set_language(arg.strip().lower())
            except ValueError:
                print(f"⚠️  Languages: {', '.join(LANGUAGES)}")
                return None
            controller.update_answer(panel.code, panel.language)
            draft[:] = []
            print(f"🧩 Language: {LANGUAGES[panel.language]}")
        elif panel and command == ":stdin":
            lines = []
            while True:
                line = self._read("stdin> ")
                if line is None or line.strip() == ":end":
                    break
                lines.append(line)
            panel.stdin = "\n".join(lines)
        elif panel and command == ":show":
            print(panel.code)
        elif panel and command == ":template":
            panel.load(None, panel.language)
            controller.update_answer(panel.code, panel.language)
            draft[:] = []
        else:
            print(CODING_HELP.format(languages=", ".join(LANGUAGES)) if panel else TEXT_HELP)
        return None

    def _run_code(self, panel: CodeExecutionPanel) -> None:
        print(f"▶️  Running {LANGUAGES[panel.language]}...")
        ticker = self.scheduler.call_every(5.0, lambda: print(f"   ⏱️  {panel.elapsed_seconds:.0f}s"))
        try:
            result = panel.run()
        finally:
            ticker.cancel()
        if result is None:
            return
        for label, text in render_result(result):
            print(f"{label}:")
            print(f"  {text.rstrip()}".replace("\n", "\n  "))
        print(f"   (took {result.wall_seconds:.1f}s)")

    def _create_speech_provider(self) -> SpeechCapabilityProvider:
        """
        Raises:
            CapabilityUnavailableError: If neither recognition nor synthesis is available
        """
        if self._speech_provider is None:
            # Google Cloud clients are only needed for voice interviews
            from ..infrastructure.speech.google import GoogleSpeechProvider
            self._speech_provider = GoogleSpeechProvider(
                language_code=self.config.language_code,
                voice=self.config.tts_voice,
                speaking_rate=self.config.tts_speaking_rate,
                enable_tts=self.use_tts,
            )
        provider = self._speech_provider
        if not (provider.recognition_supported() or provider.synthesis_supported()):
            raise CapabilityUnavailableError("No speech input or output is available.")
        return provider

    def _run_voice(self, interview: Interview,
                   provider: SpeechCapabilityProvider) -> Optional[InterviewBundle]:
        controller = SessionController(interview, voice_submitter(self.gateway),
                                       event_bus=self.event_bus, scheduler=self.scheduler,
                                       on_complete=lambda _: print("\n🏁 Interview complete. Press Enter for results."))
        notifier = controller.notifier
        speech_output = SpeechOutputAdapter(provider.create_synthesizer(), self.scheduler,
                                            chunk_size=self.config.tts_chunk_size,
                                            enabled=self.config.auto_speak)
        speech_input = SpeechInputAdapter(provider.create_recognizer(), notifier, speech_output,
                                          max_restarts=self.config.recognition_max_restarts)
        chat_input = SpeechInputAdapter(provider.create_recognizer(), notifier, speech_output,
                                        max_restarts=self.config.recognition_max_restarts)
        flow = VoiceInterviewFlow(controller, speech_input, speech_output, self.scheduler,
                                  auto_speak=self.config.auto_speak)
        chat = VoiceChatPanel(self.gateway, notifier, chat_input, speech_output, interview_id=interview.id)

        def show_question(_event: SessionEvent) -> None:
            self._print_question(controller)

        print(VOICE_HELP)
        self.event_bus.subscribe(EventType.QUESTION_CHANGED, show_question)
        flow.start()
        self._print_question(controller)
        try:
            while controller.phase != Phase.COMPLETE:
                line = self._read()
                if controller.phase == Phase.COMPLETE:
                    break
                if line is None or line.strip() == ":quit":
                    return None
                command, _, arg = line.strip().partition(" ")

                if not line.startswith(":"):
                    if line.strip():
                        flow.type_answer(line.strip())
                    continue
                try:
                    self._handle_voice_command(flow, chat, command, arg)
                except SessionStateError as e:
                    print(f"⚠️  {e}")
            return flow.bundle
        finally:
            flow.stop()
            self.event_bus.unsubscribe(EventType.QUESTION_CHANGED, show_question)

    def _handle_voice_command(self, flow: VoiceInterviewFlow, chat: VoiceChatPanel,
                              command: str, arg: str) -> None:
        if command == ":record":
            if flow.start_answer():
                print("🎧 Listening... :stop when you are done")
        elif command == ":stop":
            text = flow.stop_answer()
            if text:
                print(f"💬 \"{text}\"")
        elif command == ":submit":
            print("⏳ Evaluating...")
            feedback = flow.submit()
            if feedback is not None:
                self._print_feedback(feedback)
        elif command == ":skip":
            flow.skip()
        elif command == ":repeat":
            flow.announce()
        elif command == ":speak":
            flow.auto_speak = arg.strip().lower() != "off"
            print(f"🔊 Auto-speak {'on' if flow.auto_speak else 'off'}")
        elif command == ":chat":
            reply = chat.send_message(arg)
            if reply:
                print(f"🤖 {reply}")
        elif command == ":listen":
            chat.start_recording()
        elif command == ":send":
            reply = chat.stop_recording()
            if reply:
                print(f"🤖 {reply}")
        else:
            print(VOICE_HELP)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _display_results(self, report: InterviewReport) -> None:
        print("\n" + "=" * 50)
        print("🎯 INTERVIEW COMPLETE")
        print("=" * 50)
        if report.job_title:
            print(f"💼 {report.job_title}")
        print(f"🔢 Overall Score: {report.overall_score}  ({report.label})")
        print(f"⏱️  Time: {report.elapsed_display}")
        print(f"🟢 Excellent (80+): {report.excellent_count}   "
              f"🟡 Good (60-79): {report.good_count}   "
              f"🔴 Needs Improvement (<60): {report.needs_improvement_count}")
        for row in report.rows:
            print(f"\n{row.number}. {row.question}")
            if row.feedback is None:
                print("   ⏭️  Skipped")
                continue
            print(f"   📊 {row.feedback.score}/100")
            print(f"   💬 {row.feedback.explanation}")

        print(f"\n📁 Full details logged to: {self.log_file}")
        print(f"📈 Session metrics: {self.metrics.get_metrics()}")

    def get_metrics(self) -> Dict[str, int]:
        """Get current session metrics."""
        return self.metrics.get_metrics()

    def reset_metrics(self):
        """Reset session metrics."""
        self.metrics.reset()
