"""Global test configuration for check-doctor tests."""

from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env so that IDE test runners and the CLI
# see the same environment
env_file = Path(__file__).parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file)
