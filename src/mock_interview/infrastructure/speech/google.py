"""
Speech engines backed by Google Cloud Speech-to-Text and Text-to-Speech.
"""
import os
import shutil
import logging
import tempfile
import threading
import subprocess
import importlib.util
from typing import Optional, Iterator

from google.api_core import exceptions as google_exceptions
from google.cloud import speech
from google.cloud import texttospeech

from ...config import (
    LANGUAGE_CODE, TTS_VOICE, TTS_SPEAKING_RATE, TTS_SAMPLE_RATE, AUDIO_PLAYERS,
    RECOGNITION_SAMPLE_RATE, RECOGNITION_CHUNK_MS
)
from .engines import (
    RecognitionEngine, SynthesisEngine, SpeechCapabilityProvider,
    RecognitionEvent, RecognitionSegment, EndHandler, ErrorHandler
)

logger = logging.getLogger("speech_google")


def find_audio_player() -> Optional[str]:
    """First command-line WAV player found on PATH (macOS afplay, then ALSA aplay)."""
    for player in AUDIO_PLAYERS:
        path = shutil.which(player)
        if path:
            return path
    return None


class GoogleStreamingRecognizer(RecognitionEngine):
    """Streams microphone audio to Google Cloud Speech with interim results."""

    def __init__(self,
                 language_code: str = LANGUAGE_CODE,
                 sample_rate: int = RECOGNITION_SAMPLE_RATE,
                 chunk_ms: int = RECOGNITION_CHUNK_MS):
        super().__init__()
        self.language_code = language_code
        self.sample_rate = sample_rate
        self.frames_per_chunk = int(sample_rate * chunk_ms / 1000)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        previous = self._thread
        # A restart requested from the end callback runs on the finishing thread
        if (previous is not None and previous.is_alive() and previous is not threading.current_thread()
                and not self._stop_event.is_set()):
            raise RuntimeError("Recognition already started")
        # A stream that was stopped may still be closing; it finishes on its own and stays silent
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop_event,),
                                        name="speech-recognition", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def _is_current(self) -> bool:
        return self._thread is threading.current_thread()

    def _audio_requests(self, stream, stop_event: threading.Event) -> Iterator[speech.StreamingRecognizeRequest]:
        while not stop_event.is_set():
            data = stream.read(self.frames_per_chunk, exception_on_overflow=False)
            yield speech.StreamingRecognizeRequest(audio_content=data)

    def _run(self, stop_event: threading.Event) -> None:
        # PyAudio is only needed once capture actually starts
        import pyaudio

        pa = pyaudio.PyAudio()
        stream = None
        try:
            stream = pa.open(format=pyaudio.paInt16, channels=1, rate=self.sample_rate,
                             input=True, frames_per_buffer=self.frames_per_chunk)
            client = speech.SpeechClient()
            streaming_config = speech.StreamingRecognitionConfig(
                config=speech.RecognitionConfig(
                    encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                    sample_rate_hertz=self.sample_rate,
                    language_code=self.language_code,
                    enable_automatic_punctuation=True,
                ),
                interim_results=True,
            )
            responses = client.streaming_recognize(config=streaming_config,
                                                   requests=self._audio_requests(stream, stop_event))
            for response in responses:
                if stop_event.is_set():
                    break
                segments = [
                    RecognitionSegment(text=result.alternatives[0].transcript, is_final=result.is_final)
                    for result in response.results if result.alternatives
                ]
                if segments and self.on_result:
                    self.on_result(RecognitionEvent(segments))
        except (google_exceptions.OutOfRange, google_exceptions.DeadlineExceeded) as e:
            # Streaming sessions have a service-side duration limit
            logger.info("Recognition stream ended by service: %s", e)
        except google_exceptions.GoogleAPICallError as e:
            logger.error("Speech recognition failed: %s", e)
            if self.on_error and self._is_current():
                self.on_error("network")
        except OSError as e:
            logger.error("Microphone capture failed: %s", e)
            if self.on_error and self._is_current():
                self.on_error("audio-capture")
        finally:
            if stream is not None:
                stream.stop_stream()
                stream.close()
            pa.terminate()
            if self.on_end and self._is_current():
                self.on_end()


class GoogleSynthesisEngine(SynthesisEngine):
    """Synthesizes with Google Cloud TTS and plays the WAV through a system player."""

    def __init__(self,
                 voice: str = TTS_VOICE,
                 language_code: str = LANGUAGE_CODE,
                 speaking_rate: float = TTS_SPEAKING_RATE,
                 player: Optional[str] = None):
        self.voice = voice
        self.language_code = language_code
        self.speaking_rate = speaking_rate
        self.player = player or find_audio_player()
        self._client: Optional[texttospeech.TextToSpeechClient] = None
        self._process: Optional[subprocess.Popen] = None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()

    def _synthesize(self, text: str) -> bytes:
        if self._client is None:
            self._client = texttospeech.TextToSpeechClient()
        response = self._client.synthesize_speech(
            input=texttospeech.SynthesisInput(text=text),
            voice=texttospeech.VoiceSelectionParams(language_code=self.language_code, name=self.voice),
            audio_config=texttospeech.AudioConfig(
                audio_encoding=texttospeech.AudioEncoding.LINEAR16,
                sample_rate_hertz=TTS_SAMPLE_RATE,
                speaking_rate=self.speaking_rate,
            ),
        )
        return response.audio_content

    def speak(self, text: str, on_end: EndHandler, on_error: ErrorHandler) -> None:
        self._cancelled = threading.Event()
        cancelled = self._cancelled
        thread = threading.Thread(target=self._play, args=(text, on_end, on_error, cancelled),
                                  name="speech-synthesis", daemon=True)
        thread.start()

    def _play(self, text: str, on_end: EndHandler, on_error: ErrorHandler,
              cancelled: threading.Event) -> None:
        wav_path = None
        try:
            audio = self._synthesize(text)
            if cancelled.is_set():
                on_error("canceled")
                return
            with tempfile.NamedTemporaryFile(suffix='.wav', delete=False) as tmp_file:
                wav_path = tmp_file.name
                tmp_file.write(audio)
            with self._lock:
                self._process = subprocess.Popen([self.player, wav_path],
                                                 stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
                process = self._process
            returncode = process.wait()
            if cancelled.is_set():
                on_error("canceled")
            elif returncode != 0:
                on_error(f"player exited with {returncode}")
            else:
                on_end()
        except (google_exceptions.GoogleAPICallError, OSError) as e:
            logger.error("Google TTS failed: %s", e)
            on_error(str(e))
        finally:
            if wav_path:
                try:
                    os.unlink(wav_path)
                except OSError:
                    logger.debug("Could not remove %s", wav_path)

    def cancel(self) -> None:
        self._cancelled.set()
        with self._lock:
            if self._process is not None and self._process.poll() is None:
                self._process.terminate()


class GoogleSpeechProvider(SpeechCapabilityProvider):
    """Google Cloud speech capabilities, available when local audio I/O is."""

    def __init__(self,
                 language_code: str = LANGUAGE_CODE,
                 voice: str = TTS_VOICE,
                 speaking_rate: float = TTS_SPEAKING_RATE,
                 enable_tts: bool = True):
        self.language_code = language_code
        self.voice = voice
        self.speaking_rate = speaking_rate
        self.enable_tts = enable_tts
        self._player = find_audio_player()
        self._has_microphone_driver = importlib.util.find_spec("pyaudio") is not None
        logger.info("Speech capabilities: recognition=%s synthesis=%s",
                    self._has_microphone_driver, self.synthesis_supported())

    def recognition_supported(self) -> bool:
        return self._has_microphone_driver

    def synthesis_supported(self) -> bool:
        return self.enable_tts and self._player is not None

    def create_recognizer(self) -> Optional[RecognitionEngine]:
        if not self.recognition_supported():
            return None
        return GoogleStreamingRecognizer(language_code=self.language_code)

    def create_synthesizer(self) -> Optional[SynthesisEngine]:
        if not self.synthesis_supported():
            return None
        return GoogleSynthesisEngine(voice=self.voice, language_code=self.language_code,
                                     speaking_rate=self.speaking_rate, player=self._player)
