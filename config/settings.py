"""Runtime settings read from the environment (``.env`` is loaded by the entrypoints)."""

import os


# Vendor endpoint (keys are read by services/secrets.py at refresh time)
GONG_API_BASE_URL = os.getenv("GONG_API_BASE_URL", "https://api.gong.io/v2")
GONG_TIMEOUT_SECONDS = float(os.getenv("GONG_TIMEOUT_SECONDS", "30"))

# Default transcript window sent with every transcript request
TRANSCRIPT_FROM_DATETIME = os.getenv("TRANSCRIPT_FROM_DATETIME", "2023-01-01T00:00:00Z")
TRANSCRIPT_TO_DATETIME = os.getenv("TRANSCRIPT_TO_DATETIME", "2025-12-31T23:59:59Z")

# LLM (OpenAI-compatible chat completions)
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4-turbo-preview")

# Credential cache refresh interval
SECRETS_TTL_SECONDS = float(os.getenv("SECRETS_TTL_SECONDS", "3600"))

# Analysis storage root (call_analyses/ is created beneath it)
DATA_DIR = os.getenv("CALLPULSE_DATA_DIR", "data")

# Pacing for AI analysis runs
CALL_DELAY_SECONDS = float(os.getenv("CALL_DELAY_SECONDS", "1"))
BATCH_DELAY_SECONDS = float(os.getenv("BATCH_DELAY_SECONDS", "2"))
DEFAULT_BATCH_SIZE = int(os.getenv("DEFAULT_BATCH_SIZE", "5"))
MIN_CONVERSATION_CHARS = 100
