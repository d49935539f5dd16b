"""Tests for the request complexity analyzer."""

import pytest

from taskpilot.models.complexity import ComplexityLevel, ComplexityVerdict
from taskpilot.services.complexity_service import ComplexityAnalyzer


@pytest.fixture
def analyzer():
    return ComplexityAnalyzer()


# ── Short-circuit rules ──────────────────────────────────────────────


class TestShortCircuits:
    def test_empty_input(self, analyzer):
        verdict = analyzer.analyze("")
        assert verdict.level == ComplexityLevel.SIMPLE
        assert verdict.score == 0
        assert verdict.reasoning == "Empty input"

    def test_blank_input(self, analyzer):
        assert analyzer.analyze("   \n").reasoning == "Empty input"

    def test_none_input(self, analyzer):
        assert analyzer.analyze(None).level == ComplexityLevel.SIMPLE

    @pytest.mark.parametrize(
        "text",
        [
            "@plan create an authentication system with database and api",
            "@errors " + "implement system module and database " * 20,
        ],
    )
    def test_tool_commands_are_simple_regardless_of_content(self, analyzer, text):
        verdict = analyzer.analyze(text)
        assert verdict.level == ComplexityLevel.SIMPLE
        assert verdict.score == 0
        assert verdict.reasoning == "Tool command"

    def test_leading_slash_is_not_a_command(self, analyzer):
        verdict = analyzer.analyze("/src/app.py: implement auth system and database")
        assert verdict.reasoning != "Tool command"
        assert analyzer.should_suggest_plan(verdict)

    def test_simple_question(self, analyzer):
        verdict = analyzer.analyze("What does the database module do?")
        assert verdict == ComplexityVerdict(
            ComplexityLevel.SIMPLE, 0, "Simple question"
        )

    def test_question_without_query_word_is_scored(self, analyzer):
        verdict = analyzer.analyze("add a database?")
        assert verdict.score == 5
        assert verdict.level == ComplexityLevel.MODERATE


# ── Scoring ──────────────────────────────────────────────────────────


class TestScoring:
    def test_basic_task(self, analyzer):
        verdict = analyzer.analyze("fix typo")
        assert verdict.score == 0
        assert verdict.reasoning == "Basic task"

    def test_single_action(self, analyzer):
        verdict = analyzer.analyze("add a button")
        assert verdict.score == 2
        assert verdict.level == ComplexityLevel.SIMPLE
        assert verdict.reasoning == "Action keywords: 1"

    def test_action_and_indicator(self, analyzer):
        verdict = analyzer.analyze("create a new service")
        assert verdict.score == 5
        assert verdict.level == ComplexityLevel.MODERATE

    def test_keywords_match_whole_words_only(self, analyzer):
        assert analyzer.analyze("address the padding").score == 0

    def test_repeated_keyword_counts_once(self, analyzer):
        assert analyzer.analyze("add add add").score == 2

    def test_file_mentions_and_conjunction(self, analyzer):
        verdict = analyzer.analyze("update user.py and models.py")
        assert verdict.score == 7
        assert verdict.level == ComplexityLevel.COMPLEX
        assert verdict.reasoning == "Multiple files/components: 2; Conjunction 'and'"

    def test_long_input(self, analyzer):
        text = (
            "please look at the thing over there in the corner "
            "of the room near the big old window"
        )
        verdict = analyzer.analyze(text)
        assert verdict.score == 2
        assert verdict.reasoning == "Long input (18 words)"

    def test_very_complex_request(self, analyzer):
        verdict = analyzer.analyze(
            "implement authentication and add a database module"
        )
        # actions 2x2, indicators 3x3, verbs (2-1)x2, conjunction 3
        assert verdict.score == 18
        assert verdict.level == ComplexityLevel.VERY_COMPLEX

    def test_french_request(self, analyzer):
        verdict = analyzer.analyze(
            "ajoute un système d'authentification et une base de données"
        )
        assert verdict.score == 14
        assert verdict.level == ComplexityLevel.VERY_COMPLEX


# ── Plan suggestion gate ─────────────────────────────────────────────


class TestShouldSuggestPlan:
    @pytest.mark.parametrize(
        "level,expected",
        [
            (ComplexityLevel.SIMPLE, False),
            (ComplexityLevel.MODERATE, False),
            (ComplexityLevel.COMPLEX, True),
            (ComplexityLevel.VERY_COMPLEX, True),
        ],
    )
    def test_gate_by_level(self, analyzer, level, expected):
        verdict = ComplexityVerdict(level, 0, "")
        assert analyzer.should_suggest_plan(verdict) is expected

    def test_high_score_suggests_plan(self, analyzer):
        verdict = analyzer.analyze(
            "refactor the authentication service and migrate the database"
        )
        assert verdict.score >= 10
        assert analyzer.should_suggest_plan(verdict)

    def test_verdict_str(self):
        verdict = ComplexityVerdict(ComplexityLevel.COMPLEX, 7, "Basic task")
        assert str(verdict) == "Level: COMPLEX, Score: 7, Reasoning: Basic task"
