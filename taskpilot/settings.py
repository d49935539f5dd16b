"""Unified configuration for taskpilot.

Loads settings from (in order of precedence, highest first):
1. Environment variables (TASKPILOT_*)
2. Project-local config (.taskpilot.yml in cwd)
3. User config (~/.taskpilot/config.yml)
4. Built-in defaults
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class LLMSettings:
    """Reasoning engine (OpenAI-compatible endpoint) configuration."""

    base_url: str = "http://localhost:5000/v1"
    model: str = "Meta-Llama-3.1-8B-Instruct-exl2-8_0"
    api_key: str = "not-needed"
    timeout: float = 300.0


@dataclass
class ExecutionSettings:
    """Plan execution configuration."""

    task_delay: float = 0.5


@dataclass
class KnowledgeSettings:
    """Error knowledge store configuration."""

    path: str = ".taskpilot/error-knowledge.json"
    max_patterns: int = 200


@dataclass
class PilotSettings:
    """Root configuration container."""

    llm: LLMSettings = field(default_factory=LLMSettings)
    execution: ExecutionSettings = field(default_factory=ExecutionSettings)
    knowledge: KnowledgeSettings = field(default_factory=KnowledgeSettings)


def load_yaml_config(path: Path) -> dict:
    """Load a YAML config file, returning empty dict if not found.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed dict, or empty dict on any failure.
    """
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


def _apply_dict_to_llm(settings: LLMSettings, data: dict) -> None:
    """Apply dict values to LLMSettings."""
    if "base_url" in data:
        settings.base_url = str(data["base_url"])
    if "model" in data:
        settings.model = str(data["model"])
    if "api_key" in data:
        settings.api_key = str(data["api_key"])
    if "timeout" in data:
        settings.timeout = float(data["timeout"])


def _apply_dict_to_execution(settings: ExecutionSettings, data: dict) -> None:
    """Apply dict values to ExecutionSettings."""
    if "task_delay" in data:
        settings.task_delay = max(0.0, float(data["task_delay"]))


def _apply_dict_to_knowledge(settings: KnowledgeSettings, data: dict) -> None:
    """Apply dict values to KnowledgeSettings."""
    if "path" in data:
        settings.path = str(data["path"])
    if "max_patterns" in data:
        settings.max_patterns = int(data["max_patterns"])


def _apply_config_dict(settings: PilotSettings, data: dict) -> None:
    """Apply every known section of a parsed config file."""
    if isinstance(data.get("llm"), dict):
        _apply_dict_to_llm(settings.llm, data["llm"])
    if isinstance(data.get("execution"), dict):
        _apply_dict_to_execution(settings.execution, data["execution"])
    if isinstance(data.get("knowledge"), dict):
        _apply_dict_to_knowledge(settings.knowledge, data["knowledge"])


def _apply_env_overrides(settings: PilotSettings) -> None:
    """Apply TASKPILOT_* environment variable overrides."""
    base_url = os.environ.get("TASKPILOT_LLM_BASE_URL")
    if base_url:
        settings.llm.base_url = base_url

    model = os.environ.get("TASKPILOT_LLM_MODEL")
    if model:
        settings.llm.model = model

    api_key = os.environ.get("TASKPILOT_LLM_API_KEY")
    if api_key:
        settings.llm.api_key = api_key

    timeout = os.environ.get("TASKPILOT_LLM_TIMEOUT")
    if timeout:
        settings.llm.timeout = float(timeout)

    task_delay = os.environ.get("TASKPILOT_TASK_DELAY")
    if task_delay:
        settings.execution.task_delay = max(0.0, float(task_delay))

    knowledge_path = os.environ.get("TASKPILOT_KNOWLEDGE_PATH")
    if knowledge_path:
        settings.knowledge.path = knowledge_path

    max_patterns = os.environ.get("TASKPILOT_KNOWLEDGE_MAX_PATTERNS")
    if max_patterns:
        settings.knowledge.max_patterns = int(max_patterns)


def load_settings(
    user_config_path: Optional[Path] = None,
    project_config_path: Optional[Path] = None,
) -> PilotSettings:
    """Load settings from config files and env vars.

    Args:
        user_config_path: Override path for user config (testing).
        project_config_path: Override path for project config (testing).

    Returns:
        Fully resolved PilotSettings.
    """
    settings = PilotSettings()

    user_path = user_config_path or (Path.home() / ".taskpilot" / "config.yml")
    _apply_config_dict(settings, load_yaml_config(user_path))

    project_path = project_config_path or (Path.cwd() / ".taskpilot.yml")
    _apply_config_dict(settings, load_yaml_config(project_path))

    _apply_env_overrides(settings)

    return settings


# Module-level cached instance
_settings: Optional[PilotSettings] = None


def get_settings() -> PilotSettings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (for testing)."""
    global _settings
    _settings = None
