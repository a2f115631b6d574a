#!/usr/bin/env python3
"""
Flask REST API entry point for Fragrance Lab.

Uses environment variables (and a local .env file) for configuration.
"""
import os
import logging

from dotenv import load_dotenv

from fragrance_lab.app import FragranceLabApp
from fragrance_lab.config_loader import load_config_from_env
from fragrance_lab.web import create_app

# Load environment variables
load_dotenv()

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


def _initialize_lab_from_env() -> FragranceLabApp:
    """Build and initialize the fragrance lab from environment variables."""
    config = load_config_from_env(use_dotenv=False)
    lab_app = FragranceLabApp(config)
    lab_app.initialize()
    logger.info("Fragrance lab initialized from environment variables")
    return lab_app


app = create_app(_initialize_lab_from_env())
app.secret_key = os.environ.get("FLASK_SECRET_KEY", os.urandom(32).hex())


if __name__ == "__main__":
    port = int(os.getenv("PORT", 7860))
    # Disable debug mode for production
    app.run(host="0.0.0.0", port=port, debug=False)
