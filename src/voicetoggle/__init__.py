# VoiceToggle - Toggle-to-Talk Speech-to-Text

"""
Voice-to-text capture: record with SoX, transcribe with whisper.cpp or the
OpenAI transcription API, and insert the text at the cursor.
"""

__version__ = "0.1.0"
__app_name__ = "VoiceToggle"
