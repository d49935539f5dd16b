import os
from dataclasses import dataclass, field
from typing import List

# Marker file -> project type, first match wins
PROJECT_MARKERS = [
    ("pyproject.toml", "python"),
    ("setup.py", "python"),
    ("package.json", "node"),
    ("pom.xml", "maven"),
    ("build.gradle", "gradle"),
    ("go.mod", "go"),
    ("Cargo.toml", "rust"),
]

# Project type -> manifests to scan and (substring, framework) pairs
FRAMEWORK_HINTS = {
    "python": (
        ["requirements.txt", "pyproject.toml", "setup.py"],
        [
            ("django", "Django"),
            ("flask", "Flask"),
            ("fastapi", "FastAPI"),
            ("pytest", "pytest"),
        ],
    ),
    "node": (
        ["package.json"],
        [
            ('"react"', "React"),
            ('"vue"', "Vue"),
            ('"@angular/core"', "Angular"),
            ('"express"', "Express"),
            ('"next"', "Next.js"),
            ('"jest"', "Jest"),
        ],
    ),
    "maven": (
        ["pom.xml"],
        [
            ("spring-boot", "Spring Boot"),
            ("persistence", "JPA"),
            ("junit", "JUnit"),
        ],
    ),
    "gradle": (
        ["build.gradle"],
        [
            ("spring-boot", "Spring Boot"),
            ("persistence", "JPA"),
            ("junit", "JUnit"),
        ],
    ),
    "go": (
        ["go.mod"],
        [
            ("gin-gonic/gin", "Gin"),
            ("gorilla/mux", "Gorilla Mux"),
            ("gofiber/fiber", "Fiber"),
        ],
    ),
}


def detect_frameworks(root: str, project_type: str) -> List[str]:
    """Frameworks named in the project's manifests, in hint order."""
    manifests, hints = FRAMEWORK_HINTS.get(project_type, ([], []))
    content = ""
    for manifest in manifests:
        path = os.path.join(root, manifest)
        if not os.path.isfile(path):
            continue
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                content += f.read().lower()
        except OSError:
            continue
    return [name for needle, name in hints if needle in content]


@dataclass
class ProjectContext:
    """What the executor knows about the codebase a plan runs against."""

    root: str
    name: str
    project_type: str = "unknown"
    frameworks: List[str] = field(default_factory=list)

    @classmethod
    def from_directory(cls, path: str = ".") -> "ProjectContext":
        root = os.path.abspath(path)
        project_type = "unknown"
        for marker, kind in PROJECT_MARKERS:
            if os.path.isfile(os.path.join(root, marker)):
                project_type = kind
                break
        return cls(
            root=root,
            name=os.path.basename(root) or root,
            project_type=project_type,
            frameworks=detect_frameworks(root, project_type),
        )

    def describe(self) -> str:
        lines = [f"- Project: {self.name} ({self.root})"]
        if self.project_type != "unknown":
            lines.append(f"- Type: {self.project_type}")
        if self.frameworks:
            lines.append(f"- Frameworks: {', '.join(self.frameworks)}")
        return "\n".join(lines)
