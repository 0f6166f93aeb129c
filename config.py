"""Environment configuration for the try-on backend"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _float_env(name: str, default: float) -> float:
    value: Optional[str] = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"{name}={value!r} is not a number. Using default {default}.")
        return default


# Hugging Face token used to reach the hosted try-on Space
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")

# API Key for authentication of our own endpoints
API_KEY = os.getenv("API_KEY")

# Hosted IDM-VTON Space and its try-on endpoint
SPACE_ID = "yisol/IDM-VTON"
TRYON_API_NAME = "/tryon"

# Duplicating the Space can take several minutes on a cold start
PROVISION_TIMEOUT = _float_env("TRYON_PROVISION_TIMEOUT", 600.0)
IMAGE_FETCH_TIMEOUT = _float_env("IMAGE_FETCH_TIMEOUT", 30.0)

# Fixed inference parameters for the /tryon endpoint
GARMENT_DESCRIPTION = "A stylish garment"
AUTO_MASK = True
AUTO_CROP = False
DENOISE_STEPS = 30
SEED = 42
