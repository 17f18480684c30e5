#!/usr/bin/env python3
"""
Main entry point for the mock interview client.
Allows running the package with: python -m mock_interview
"""
import sys
import getpass
from typing import Dict, List, Optional

from .config import get_config, ROUND_TYPES
from . import InterviewOrchestrator

USAGE = """Usage: mock-interview [options]

  --login=EMAIL              sign in (password is prompted)
  --register=NAME            create an account (email and password are prompted)
  --logout                   forget the stored session
  --round=TYPE               BEHAVIORAL, CODING, DSA or SYSTEM_DESIGN
  --job-title=TITLE          job title to practice for
  --job-description=TEXT     optional job description
  --voice                    spoken interview (needs a microphone)
  --no-tts                   never speak aloud
  --history                  list past interviews
  --download=ID              save the PDF report of interview ID
  --upload-resume=PATH       upload a resume (.pdf, .doc, .docx)
  --resumes                  list uploaded resumes
  --analyze-resume=PATH      analyze a resume, against --job-description if given
"""


def _parse_args(argv: List[str]) -> Dict[str, Optional[str]]:
    options: Dict[str, Optional[str]] = {}
    for arg in argv:
        if not arg.startswith("--"):
            print(f"❌ Unexpected argument: {arg}")
            print(USAGE)
            sys.exit(1)
        name, sep, value = arg[2:].partition("=")
        options[name] = value if sep else None
    return options


def main():
    """Command-line interface for the mock interview client."""

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    options = _parse_args(sys.argv[1:])
    if "help" in options or "h" in options:
        print(USAGE)
        return

    round_type = (options.get("round") or config.round_type).upper()
    if round_type not in ROUND_TYPES:
        print(f"❌ Invalid round type. Use --round={'|'.join(ROUND_TYPES)}")
        sys.exit(1)

    use_tts = "no-tts" not in options and config.enable_tts
    voice = "voice" in options
    if voice:
        if use_tts:
            print("🔊 Voice Mode: questions and feedback will be spoken aloud")
            print("   (Use --no-tts to disable speech)")
        else:
            print("📝 Voice Mode without speech output: questions are shown as text only")

    orchestrator = InterviewOrchestrator(config=config, use_tts=use_tts)

    # Account actions
    if "logout" in options:
        orchestrator.logout()
        return
    if options.get("login"):
        if not orchestrator.login(options["login"], getpass.getpass("Password: ")):
            sys.exit(1)
    elif options.get("register"):
        email = input("Email: ")
        if not orchestrator.register(options["register"], email, getpass.getpass("Password: ")):
            sys.exit(1)

    if orchestrator.user is None:
        print("ℹ️  Not signed in. Use --login=EMAIL or --register=NAME.")

    # One-shot actions
    job_description = options.get("job-description") or ""
    if "history" in options:
        sys.exit(0 if orchestrator.show_history() else 1)
    if options.get("download"):
        sys.exit(0 if orchestrator.download_report(options["download"]) else 1)
    if options.get("upload-resume"):
        sys.exit(0 if orchestrator.upload_resume(options["upload-resume"]) else 1)
    if "resumes" in options:
        sys.exit(0 if orchestrator.show_resumes() else 1)
    if options.get("analyze-resume"):
        sys.exit(0 if orchestrator.analyze_resume(options["analyze-resume"], job_description) else 1)

    job_title = options.get("job-title")
    if not job_title:
        if options.get("login") or options.get("register"):
            return
        job_title = input("💼 Job title: ")

    report = orchestrator.run(job_title, round_type, job_description, voice=voice)

    # Results are already displayed by the run() method
    # Detailed information is in the log file
    if report is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
