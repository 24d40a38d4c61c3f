"""
Centralized constants for the image captioner.
All magic numbers extracted from codebase.
"""

# ===========================================
# MODEL / REQUESTS
# ===========================================
DEFAULT_VISION_MODEL = "gpt-4o"       # update here if the vision model changes
CAPTION_MAX_TOKENS = 512              # max tokens per caption
CHAT_COMPLETIONS_ENDPOINT = "/v1/chat/completions"
BATCH_COMPLETION_WINDOW = "24h"
FIDELITY_LEVELS = ("low", "high", "auto")
OUTPUT_EXTENSIONS = ("txt", "caption")
REQUEST_TIMEOUT_SECONDS = 120.0

# ===========================================
# BATCH PROCESSING
# ===========================================
MIB = 1024 * 1024
BATCH_UPLOAD_HARD_CAP_MB = 200             # provider limit per input file
DEFAULT_CHUNK_BUDGET_MB = 180               # headroom under the hard cap
DEFAULT_CHUNK_BUDGET_BYTES = DEFAULT_CHUNK_BUDGET_MB * MIB
ENCODING_INFLATION = 1.33                   # base64 grows payloads by ~33%
BATCH_POLL_INTERVAL_SECONDS = 30.0
MANIFEST_FILENAME_TEMPLATE = "batch_input_{index}.jsonl"

# ===========================================
# SYNCHRONOUS PROCESSING
# ===========================================
RATE_LIMIT_PER_MINUTE = 100000        # https://platform.openai.com/account/limits
SYNC_MAX_ATTEMPTS = 3

# ===========================================
# COST ESTIMATE
# ===========================================
LOW_FIDELITY_TOKENS_PER_IMAGE = 85
HIGH_FIDELITY_TILE_TOKENS = 170
HIGH_FIDELITY_TILES = 6
HIGH_FIDELITY_BASE_TOKENS = 85
USD_PER_1K_TOKENS = 0.01
BATCH_DISCOUNT = 0.5

# ===========================================
# FILE HANDLING
# ===========================================
IMAGE_EXTENSIONS = (
    "png", "jpeg", "jpg", "gif", "bmp",
    "tiff", "tif", "svg", "webp", "ico",
)
IGNORED_DIRECTORY_ENTRIES = (".gitkeep",)
IMAGES_DIR = "images"
OUTPUT_DIR = "output"
PROMPT_FILE = "prompt.txt"
TEMP_DIR = "data/temp"

# ===========================================
# LOGGING
# ===========================================
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE = 'logs/captioner.log'
LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 5
