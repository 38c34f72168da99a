import os
from dotenv import load_dotenv

load_dotenv()

# Gemini Configuration (priority 1)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# OpenRouter Configuration (priority 2)
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "tngtech/deepseek-r1t2-chimera:free")

# Ollama Configuration (local fallback)
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.1:8b")

# Per-call timeout in seconds (no internal backoff, so keep this bounded)
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "180"))

# Pacing
WORDS_PER_MINUTE = 130  # Standard speaking rate applied to every section and chunk
WORD_BUFFER_RATIO = 1.10  # Bias chunks toward completeness over brevity

# Chunking Configuration
CHUNKING_THRESHOLD_MINUTES = int(os.getenv("CHUNKING_THRESHOLD_MINUTES", "20"))
# Outline generation runs for chunked scripts at or above this length
OUTLINE_MIN_MINUTES = int(os.getenv("OUTLINE_MIN_MINUTES", str(CHUNKING_THRESHOLD_MINUTES)))

# Outline call: low temperature for consistent structure
OUTLINE_TEMPERATURE = float(os.getenv("OUTLINE_TEMPERATURE", "0.3"))
OUTLINE_MAX_TOKENS = int(os.getenv("OUTLINE_MAX_TOKENS", "16000"))

# Content plan call
PLAN_TEMPERATURE = float(os.getenv("PLAN_TEMPERATURE", "0.3"))
PLAN_MAX_TOKENS = int(os.getenv("PLAN_MAX_TOKENS", "2048"))

# Chunk calls
CHUNK_TEMPERATURE = float(os.getenv("CHUNK_TEMPERATURE", "0.7"))
CHUNK_MAX_TOKENS = int(os.getenv("CHUNK_MAX_TOKENS", "8192"))
# Regenerations of a single failed chunk (0 disables retry)
CHUNK_MAX_RETRIES = int(os.getenv("CHUNK_MAX_RETRIES", "1"))

# Output directories
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")
