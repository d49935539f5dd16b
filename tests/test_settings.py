"""Tests for the unified settings module."""

import os
from unittest.mock import patch

from taskpilot.settings import (
    ExecutionSettings,
    KnowledgeSettings,
    LLMSettings,
    get_settings,
    load_settings,
    load_yaml_config,
    reset_settings,
)

ENV_KEYS = [
    "TASKPILOT_LLM_BASE_URL",
    "TASKPILOT_LLM_MODEL",
    "TASKPILOT_LLM_API_KEY",
    "TASKPILOT_LLM_TIMEOUT",
    "TASKPILOT_TASK_DELAY",
    "TASKPILOT_KNOWLEDGE_PATH",
    "TASKPILOT_KNOWLEDGE_MAX_PATTERNS",
]


def _load(tmp_path, user=None, project=None, env=None):
    with patch.dict(os.environ, env or {}, clear=False):
        for key in ENV_KEYS:
            if not env or key not in env:
                os.environ.pop(key, None)
        return load_settings(
            user_config_path=user or tmp_path / "nope.yml",
            project_config_path=project or tmp_path / "nope2.yml",
        )


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_llm_defaults(self):
        s = LLMSettings()
        assert s.base_url == "http://localhost:5000/v1"
        assert s.api_key == "not-needed"
        assert s.timeout == 300.0

    def test_execution_default_delay(self):
        assert ExecutionSettings().task_delay == 0.5

    def test_knowledge_defaults(self):
        s = KnowledgeSettings()
        assert s.path == ".taskpilot/error-knowledge.json"
        assert s.max_patterns == 200


# ---------------------------------------------------------------------------
# load_yaml_config
# ---------------------------------------------------------------------------


class TestLoadYamlConfig:
    def test_returns_empty_dict_for_missing_file(self, tmp_path):
        assert load_yaml_config(tmp_path / "nonexistent.yml") == {}

    def test_loads_valid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yml"
        config_file.write_text("execution:\n  task_delay: 1.5\n")
        assert load_yaml_config(config_file)["execution"]["task_delay"] == 1.5

    def test_returns_empty_dict_for_non_dict_yaml(self, tmp_path):
        config_file = tmp_path / "config.yml"
        config_file.write_text("just a string\n")
        assert load_yaml_config(config_file) == {}

    def test_returns_empty_dict_for_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yml"
        config_file.write_text("llm: [unclosed\n")
        assert load_yaml_config(config_file) == {}


# ---------------------------------------------------------------------------
# load_settings precedence
# ---------------------------------------------------------------------------


class TestLoadSettings:
    def test_defaults_with_no_config(self, tmp_path):
        settings = _load(tmp_path)
        assert settings.llm.base_url == "http://localhost:5000/v1"
        assert settings.execution.task_delay == 0.5
        assert settings.knowledge.max_patterns == 200

    def test_user_config_overrides_defaults(self, tmp_path):
        user_cfg = tmp_path / "user.yml"
        user_cfg.write_text("llm:\n  model: my-custom-model\n")
        settings = _load(tmp_path, user=user_cfg)
        assert settings.llm.model == "my-custom-model"
        assert settings.llm.base_url == "http://localhost:5000/v1"

    def test_project_config_overrides_user_config(self, tmp_path):
        user_cfg = tmp_path / "user.yml"
        user_cfg.write_text("knowledge:\n  path: user.json\n  max_patterns: 50\n")
        project_cfg = tmp_path / "project.yml"
        project_cfg.write_text("knowledge:\n  path: project.json\n")
        settings = _load(tmp_path, user=user_cfg, project=project_cfg)
        assert settings.knowledge.path == "project.json"
        assert settings.knowledge.max_patterns == 50

    def test_env_vars_override_all(self, tmp_path):
        project_cfg = tmp_path / "project.yml"
        project_cfg.write_text("execution:\n  task_delay: 2\n")
        settings = _load(
            tmp_path,
            project=project_cfg,
            env={"TASKPILOT_TASK_DELAY": "0", "TASKPILOT_LLM_MODEL": "env-model"},
        )
        assert settings.execution.task_delay == 0.0
        assert settings.llm.model == "env-model"

    def test_negative_delay_clamped(self, tmp_path):
        project_cfg = tmp_path / "project.yml"
        project_cfg.write_text("execution:\n  task_delay: -3\n")
        assert _load(tmp_path, project=project_cfg).execution.task_delay == 0.0

    def test_knowledge_env_overrides(self, tmp_path):
        settings = _load(
            tmp_path,
            env={
                "TASKPILOT_KNOWLEDGE_PATH": "/tmp/k.json",
                "TASKPILOT_KNOWLEDGE_MAX_PATTERNS": "10",
            },
        )
        assert settings.knowledge.path == "/tmp/k.json"
        assert settings.knowledge.max_patterns == 10

    def test_unknown_sections_ignored(self, tmp_path):
        project_cfg = tmp_path / "project.yml"
        project_cfg.write_text("vector_store:\n  path: x\nllm: not-a-dict\n")
        settings = _load(tmp_path, project=project_cfg)
        assert settings.llm.base_url == "http://localhost:5000/v1"


# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------


class TestSettingsCache:
    def test_get_settings_caches(self):
        reset_settings()
        try:
            assert get_settings() is get_settings()
        finally:
            reset_settings()

    def test_reset_settings_clears_cache(self):
        reset_settings()
        try:
            first = get_settings()
            reset_settings()
            assert get_settings() is not first
        finally:
            reset_settings()
