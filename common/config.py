"""
Runtime configuration read from the environment (and a .env file, if present).
"""

import os

from dotenv import load_dotenv

load_dotenv()


SAM_MODEL_PATH = os.getenv("TOOLTRACE_SAM_MODEL", "mobile_sam.pt")

# None lets ultralytics pick cuda/mps/cpu on its own
SAM_DEVICE = os.getenv("TOOLTRACE_DEVICE") or None

SEGMENTATION_TIMEOUT = float(os.getenv("TOOLTRACE_SEGMENTATION_TIMEOUT", "30"))

LOG_LEVEL = os.getenv("TOOLTRACE_LOG_LEVEL", "INFO").upper()

DEFAULT_PAPER = os.getenv("TOOLTRACE_PAPER", "LETTER")
