import os

from dotenv import load_dotenv


# Load the project root .env so integration tests can pick up GitHub / LLM credentials.
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
ENV_PATH = os.path.join(PROJECT_ROOT, ".env")

# Missing files are ignored.
load_dotenv(dotenv_path=ENV_PATH, override=False)
