import os
from dotenv import load_dotenv

# Explicitly load .env from current working directory
load_dotenv(os.path.join(os.getcwd(), ".env"))

# Load unified settings (after dotenv so env vars are available)
from taskpilot.settings import get_settings as _get_settings  # noqa: E402

_s = _get_settings()


class Config:
    # User config directory
    USER_CONFIG_DIR = os.path.expanduser("~/.taskpilot")
    HISTORY_FILE = os.path.join(USER_CONFIG_DIR, "history")

    # Reasoning engine, sourced from ~/.taskpilot/config.yml, .taskpilot.yml or env vars
    LLM_BASE_URL = _s.llm.base_url
    LLM_API_KEY = _s.llm.api_key
    LLM_MODEL = _s.llm.model
    LLM_TIMEOUT = _s.llm.timeout

    # Plan execution
    TASK_DELAY = _s.execution.task_delay

    # Error knowledge store, relative paths resolve against the working directory
    KNOWLEDGE_FILE = os.path.join(os.getcwd(), _s.knowledge.path)
    MAX_LEARNED_PATTERNS = _s.knowledge.max_patterns

    EXIT_COMMANDS = ["exit", "quit", "/exit", "/quit"]

    @classmethod
    def ensure_config_dir(cls):
        """Ensure the user config directory exists."""
        os.makedirs(cls.USER_CONFIG_DIR, exist_ok=True)

    # Logging Configuration
    LOG_DIR = os.path.join(os.getcwd(), "logs")
    LOG_FILE = os.path.join(LOG_DIR, "taskpilot.log")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_MAX_BYTES = 5 * 1024 * 1024
    LOG_BACKUP_COUNT = 3
