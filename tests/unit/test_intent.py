"""
Unit tests for prompt classification and guidance directives.
"""

import pytest

from tollgate.intent import classify, intent_directive, is_status_query, is_trivial, normalize
from tollgate.intent.classifier import UNCLASSIFIED, Intent
from tollgate.intent.directives import DACE_LINE, recovery_block, reinforce_block, status_directive


class TestTrivialAndStatus:
    @pytest.mark.parametrize("prompt", ["hello", "Hello ", "THANKS", "ok", "thank you"])
    def test_trivial(self, prompt: str) -> None:
        assert is_trivial(prompt)

    @pytest.mark.parametrize("prompt", ["hello there", "ok, fix it", ""])
    def test_not_trivial(self, prompt: str) -> None:
        assert not is_trivial(prompt)

    def test_status(self) -> None:
        assert is_status_query("What is the STATUS?")
        assert is_status_query("show status")
        assert not is_status_query("optimize the database query")

    def test_normalize(self) -> None:
        assert normalize("  Fix THIS \n") == "fix this"


class TestClassify:
    """Keyword classification."""

    def test_optimize_database(self) -> None:
        intent = classify("optimize the database query")
        assert intent.intent_type == "optimize"
        assert intent.domain == "database"
        assert intent.confidence == "high"
        assert intent.skills == ["/dsa", "/arch", "/sql"]
        assert intent.sub_agents == ["research-director", "backend-engineer"]
        assert intent.research_required

    def test_first_intent_rule_wins(self) -> None:
        intent = classify("fix the slow endpoint")
        assert intent.intent_type == "debug"
        assert intent.domain == "backend"

    def test_domain_adds_unique_skills(self) -> None:
        intent = classify("audit the security of the oauth flow")
        assert intent.intent_type == "audit"
        assert intent.domain == "security"
        assert intent.skills == ["/security", "/heal"]

    def test_medium_confidence_default(self) -> None:
        intent = classify("refactor the parser")
        assert intent.intent_type == "refactor"
        assert intent.confidence == "medium"

    def test_unclassified(self) -> None:
        intent = classify("lorem ipsum dolor")
        assert intent.intent_type == UNCLASSIFIED
        assert intent.domain == ""
        assert intent.confidence == "low"
        assert not intent.classified

    def test_domain_only(self) -> None:
        intent = classify("kubernetes manifests")
        assert intent.intent_type == ""
        assert intent.domain == "infrastructure"
        assert intent.classified

    def test_research_routes_to_research_director(self) -> None:
        intent = classify("explain how the scheduler works")
        assert intent.intent_type == "research"
        assert intent.agent == "research-director"


class TestDirectives:
    """Rendered guidance blocks."""

    def test_intent_directive_with_research_block(self) -> None:
        intent = classify("optimize the database query")
        text = intent_directive(intent, "2026-01-15", research_done=False, cutoff="2025-01")
        lines = text.splitlines()
        assert lines[0] == "[INTENT] type=optimize domain=database confidence=high date=2026-01-15"
        assert lines[1].startswith("[BLOCK:RESEARCH] BLOCKED: WebSearch required")
        assert "cutoff: 2025-01" in lines[1]
        assert lines[2] == (
            '[SKILL:AUTO_INVOKE] MANDATORY: Skill(skill:"dsa") Skill(skill:"arch") Skill(skill:"sql")'
        )
        assert lines[3] == "[BLOCK:DELEGATION] MUST: Task(subagent_type='ceo') BEFORE Write/Edit"
        assert lines[4] == DACE_LINE
        assert text.endswith("\n")

    def test_no_research_block_when_done(self) -> None:
        intent = classify("optimize the database query")
        text = intent_directive(intent, "2026-01-15", research_done=True, cutoff="2025-01")
        assert "[BLOCK:RESEARCH]" not in text

    def test_research_delegation(self) -> None:
        text = intent_directive(classify("explain the scheduler"), "2026-01-15", False, "2025-01")
        assert "Task(subagent_type='research-director') BEFORE any code" in text

    def test_non_delegating_intent_names_agent(self) -> None:
        intent = Intent(intent_type="docs", agent="research-director", confidence="medium")
        text = intent_directive(intent, "2026-01-15", True, "2025-01")
        assert "[AGENT] primary=research-director" in text
        assert "[SKILL:AUTO_INVOKE]" not in text

    def test_domain_omitted_when_empty(self) -> None:
        intent = Intent(intent_type="refactor", confidence="medium")
        first = intent_directive(intent, "2026-01-15", True, "2025-01").splitlines()[0]
        assert first == "[INTENT] type=refactor confidence=medium date=2026-01-15"

    def test_status_directive(self) -> None:
        assert status_directive().startswith("[BINARY_FIRST]\naction: IMMEDIATE\n")
        assert "command: tollgate status" in status_directive()

    def test_recovery_and_reinforce(self) -> None:
        assert recovery_block(3, "2026-01-15").startswith("[RECOVERY] turn=3 ")
        assert reinforce_block(15, "2026-01-15") == (
            "[REINFORCE] turn=15 research=2026-01-15 dace=100lines_5depth fix=root_cause"
        )
