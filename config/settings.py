"""
HealthMate — Centralized Configuration
"""
import os
from pathlib import Path


# ── Paths ───────────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"

# ── Session History Store ───────────────────────────────────────────────────
# Backend: "memory" (process lifetime) or "file" (one JSON document per session)
HISTORY_BACKEND = os.environ.get("HISTORY_BACKEND", "memory")
HISTORY_DIR = Path(os.environ.get("HISTORY_DIR", str(DATA_DIR / "history")))

# Most recent turns kept per session. 0 keeps everything.
HISTORY_MAX_TURNS = int(os.environ.get("HISTORY_MAX_TURNS", 0))

# Serve the raw history object routes under /history. Off by default: they
# write turns without going through the model.
HISTORY_API_ENABLED = os.environ.get("HISTORY_API_ENABLED", "0") == "1"

# ── Language Model Settings ────────────────────────────────────────────────
# Provider: "openrouter", "openai", "groq", "workers-ai" or "mock"
LLM_PROVIDER = os.environ.get("LLM_PROVIDER", "openrouter")

# API Keys
OPENROUTER_API_KEY = os.environ.get("OPENROUTER_API_KEY")
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
GROQ_API_KEY = os.environ.get("GROQ_API_KEY")

# Base URLs (for OpenAI-compatible endpoints)
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"

# Model Name
# Common OpenRouter models: "meta-llama/llama-3.3-70b-instruct", "openai/gpt-4o"
LLM_MODEL_NAME = os.environ.get(
    "HEALTHMATE_LLM_MODEL",
    "meta-llama/llama-3.3-70b-instruct",
)

LLM_MAX_NEW_TOKENS = 1024
LLM_TEMPERATURE = 0.5

# Seconds before an inference call is abandoned and the turn fails
INFERENCE_TIMEOUT = float(os.environ.get("INFERENCE_TIMEOUT", 60))

# ── Cloudflare Workers AI ───────────────────────────────────────────────────
CLOUDFLARE_ACCOUNT_ID = os.environ.get("CLOUDFLARE_ACCOUNT_ID")
CLOUDFLARE_API_TOKEN = os.environ.get("CLOUDFLARE_API_TOKEN")
WORKERS_AI_BASE_URL = "https://api.cloudflare.com/client/v4"
WORKERS_AI_MODEL = os.environ.get(
    "WORKERS_AI_MODEL",
    "@cf/meta/llama-3.3-70b-instruct-fp8-fast",
)

# ── API Settings ────────────────────────────────────────────────────────────
API_HOST = "0.0.0.0"
API_PORT = int(os.environ.get("PORT", 8787))
SESSION_HEADER = "X-Session-ID"

# ── System Prompt for LLM ──────────────────────────────────────────────────
HEALTHMATE_SYSTEM_PROMPT = (
    "You are HealthMate, a friendly AI assistant that gives reliable health "
    "and wellness tips. You should always clarify you're not a doctor, and "
    "encourage users to consult professionals when needed."
)
