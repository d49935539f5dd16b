"""Shared fixtures for taskpilot tests."""

import pytest

from taskpilot.services.error_recovery_service import ErrorRecoveryService
from taskpilot.services.knowledge_service import ErrorKnowledgeStore
from taskpilot.services.plan_executor import PlanSession


@pytest.fixture
def knowledge_path(tmp_path):
    return str(tmp_path / ".taskpilot" / "error-knowledge.json")


@pytest.fixture
def knowledge_store(knowledge_path):
    return ErrorKnowledgeStore(path=knowledge_path)


@pytest.fixture
def recovery(knowledge_store):
    return ErrorRecoveryService(knowledge_store=knowledge_store)


@pytest.fixture
def session():
    return PlanSession()
