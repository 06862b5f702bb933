import os

from dotenv import load_dotenv
from loguru import logger

DOTENV_PATH = os.getenv("DOTENV_PATH", ".env")
if os.path.exists(DOTENV_PATH):
    load_dotenv(dotenv_path=DOTENV_PATH)
else:
    logger.debug(f"No .env file found at {DOTENV_PATH}, using defaults/environment variables")

# Upstream services
RECOMMENDATION_API_URL = os.getenv("RECOMMENDATION_API_URL", "http://localhost:8080/api/v1")
MODEL_API_URL = os.getenv("MODEL_API_URL", "http://localhost:8000/api/v1")
# Training is served outside the versioned model API prefix
TRAIN_URL = os.getenv("TRAIN_URL", "http://localhost:8000/api/model/train")

# Request settings
CLIENT_REQUEST_TIMEOUT = float(os.getenv("CLIENT_REQUEST_TIMEOUT", "10"))  # seconds

# Polling settings
POLL_INTERVAL_MS = int(os.getenv("POLL_INTERVAL_MS", "3000"))
SNAPSHOT_QUEUE_SIZE = int(os.getenv("SNAPSHOT_QUEUE_SIZE", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
