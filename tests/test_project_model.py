"""Tests for project detection."""

from taskpilot.models.project import ProjectContext, detect_frameworks


class TestProjectType:
    def test_unknown_directory(self, tmp_path):
        context = ProjectContext.from_directory(str(tmp_path))
        assert context.project_type == "unknown"
        assert context.frameworks == []
        assert context.describe() == f"- Project: {tmp_path.name} ({tmp_path})"

    def test_first_marker_wins(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[project]\nname = 'demo'\n")
        (tmp_path / "package.json").write_text("{}")
        assert ProjectContext.from_directory(str(tmp_path)).project_type == "python"


class TestFrameworks:
    def test_python_requirements(self, tmp_path):
        (tmp_path / "setup.py").write_text("from setuptools import setup\n")
        (tmp_path / "requirements.txt").write_text("Django>=4.2\npytest\n")

        context = ProjectContext.from_directory(str(tmp_path))

        assert context.frameworks == ["Django", "pytest"]
        assert "- Frameworks: Django, pytest" in context.describe()

    def test_node_package(self, tmp_path):
        (tmp_path / "package.json").write_text(
            '{"dependencies": {"react": "^18.0.0", "express": "^4.0.0"}}'
        )
        context = ProjectContext.from_directory(str(tmp_path))
        assert context.project_type == "node"
        assert context.frameworks == ["React", "Express"]

    def test_go_module(self, tmp_path):
        (tmp_path / "go.mod").write_text("module demo\nrequire github.com/gin-gonic/gin v1.9.0\n")
        assert detect_frameworks(str(tmp_path), "go") == ["Gin"]

    def test_unsupported_type_has_none(self, tmp_path):
        (tmp_path / "Cargo.toml").write_text("[dependencies]\nflask = '1'\n")
        assert detect_frameworks(str(tmp_path), "rust") == []
