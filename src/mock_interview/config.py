"""
Mock Interview Client Configuration
===================================

This file contains ALL configuration for the mock interview client.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the client
# =============================================================================

# Backend service
API_BASE_URL = "http://localhost:8080/api"
REQUEST_TIMEOUT = 30.0

# Interview settings
DEFAULT_ROUND_TYPE = "BEHAVIORAL"
DEFAULT_CODE_LANGUAGE = "python"

# Speech settings
ENABLE_TTS = True
AUTO_SPEAK = True
LANGUAGE_CODE = "en-US"
TTS_VOICE = "en-US-Neural2-F"
TTS_SPEAKING_RATE = 0.95

# Session persistence
SESSION_FILE = "./_session/auth.json"
REPORTS_DIR = "./_reports"

# Logging
LOG_FILE = "./_session/client.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Session timers
TICK_SECONDS = 1.0
AUTOSAVE_DEBOUNCE_SECONDS = 1.0

# Code execution
CODE_EXECUTION_TIMEOUT = 20.0

# Speech output
TTS_CHUNK_SIZE = 200
TTS_INTER_CHUNK_DELAY = 0.1
NEXT_QUESTION_DELAY = 0.5
TTS_SAMPLE_RATE = 16000
AUDIO_PLAYERS = ("afplay", "aplay")

# Speech input
RECOGNITION_MAX_RESTARTS = 5
RECOGNITION_SAMPLE_RATE = 16000
RECOGNITION_CHUNK_MS = 100
TRANSIENT_RECOGNITION_ERRORS = frozenset({"no-speech"})

# Uploads and setup validation
MAX_RESUME_BYTES = 10 * 1024 * 1024
RESUME_EXTENSIONS = (".pdf", ".doc", ".docx")
RESUME_CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
MAX_JOB_DESCRIPTION_LENGTH = 2000

ROUND_TYPES = ("BEHAVIORAL", "CODING", "DSA", "SYSTEM_DESIGN")

# Score bands used by the results report
EXCELLENT_SCORE = 80
GOOD_SCORE = 60


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    api_base_url: str = API_BASE_URL
    request_timeout: float = REQUEST_TIMEOUT
    code_execution_timeout: float = CODE_EXECUTION_TIMEOUT
    round_type: str = DEFAULT_ROUND_TYPE
    code_language: str = DEFAULT_CODE_LANGUAGE
    enable_tts: bool = ENABLE_TTS
    auto_speak: bool = AUTO_SPEAK
    language_code: str = LANGUAGE_CODE
    tts_voice: str = TTS_VOICE
    tts_speaking_rate: float = TTS_SPEAKING_RATE
    tts_chunk_size: int = TTS_CHUNK_SIZE
    recognition_max_restarts: int = RECOGNITION_MAX_RESTARTS
    session_file: str = SESSION_FILE
    reports_dir: str = REPORTS_DIR
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_config(base_url: Optional[str] = None) -> Config:
    """Load configuration, letting environment variables override the defaults above."""
    round_type = (os.getenv("MOCK_INTERVIEW_ROUND") or DEFAULT_ROUND_TYPE).upper()
    if round_type not in ROUND_TYPES:
        raise ValueError(f"MOCK_INTERVIEW_ROUND must be one of {', '.join(ROUND_TYPES)}")

    return Config(
        api_base_url=(base_url or os.getenv("MOCK_INTERVIEW_API_BASE") or API_BASE_URL).rstrip("/"),
        request_timeout=_env_float("MOCK_INTERVIEW_REQUEST_TIMEOUT", REQUEST_TIMEOUT),
        code_execution_timeout=_env_float("MOCK_INTERVIEW_CODE_TIMEOUT", CODE_EXECUTION_TIMEOUT),
        round_type=round_type,
        code_language=(os.getenv("MOCK_INTERVIEW_CODE_LANGUAGE") or DEFAULT_CODE_LANGUAGE).lower(),
        enable_tts=_env_bool("MOCK_INTERVIEW_TTS", ENABLE_TTS),
        auto_speak=_env_bool("MOCK_INTERVIEW_AUTO_SPEAK", AUTO_SPEAK),
        language_code=os.getenv("MOCK_INTERVIEW_LANGUAGE") or LANGUAGE_CODE,
        tts_voice=os.getenv("MOCK_INTERVIEW_TTS_VOICE") or TTS_VOICE,
        session_file=os.getenv("MOCK_INTERVIEW_SESSION_FILE") or SESSION_FILE,
        reports_dir=os.getenv("MOCK_INTERVIEW_REPORTS_DIR") or REPORTS_DIR,
        log_file=os.getenv("MOCK_INTERVIEW_LOG_FILE") or LOG_FILE,
        log_level=(os.getenv("MOCK_INTERVIEW_LOG_LEVEL") or LOG_LEVEL).upper(),
    )
