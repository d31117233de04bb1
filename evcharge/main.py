import logging
import os

from evcharge.application import create_app

# ==== Logging policy (silence logs in production) ====
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "WARNING").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.WARNING)
logging.basicConfig(level=LOG_LEVEL)

# Reduce noisy third‑party loggers
for name in (
    "pymongo",
    "botocore",
    "boto3",
    "uvicorn",
    "uvicorn.error",
):
    logging.getLogger(name).setLevel(LOG_LEVEL)

# Access log (HTTP request per line) can leak info; disable by default
if os.getenv("ACCESS_LOG_DISABLED", "true").lower() == "true":
    al = logging.getLogger("uvicorn.access")
    al.setLevel(logging.CRITICAL)
    al.propagate = False
    al.disabled = True
    al.handlers = []

app = create_app()
