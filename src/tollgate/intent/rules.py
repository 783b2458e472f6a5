"""
Keyword tables for prompt classification.

Intent rules are checked in priority order and the first match wins. Domain
rules are all checked: the first match names the domain, every match adds
its skills and sub-agents.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class IntentRule:
    name: str
    keywords: tuple[str, ...]
    agent: str
    skills: tuple[str, ...] = ()
    sub_agents: tuple[str, ...] = ()
    confidence: str = "medium"


@dataclass(frozen=True)
class DomainRule:
    name: str
    keywords: tuple[str, ...]
    skills: tuple[str, ...] = ()
    sub_agents: tuple[str, ...] = ()


GREETINGS = frozenset({
    "hello", "hi", "hey", "thanks", "thank you", "bye", "yes", "no", "ok", "okay",
})

STATUS_TRIGGERS = (
    "status",
    "project status",
    "what is the status",
    "show status",
    "check status",
)

INTENT_RULES = (
    IntentRule(
        "debug",
        ("fix", "bug", "error", "broken", "crash", "failing", "not working"),
        agent="ceo",
        skills=("/debug-like-expert",),
        sub_agents=("research-director", "backend-engineer"),
        confidence="high",
    ),
    IntentRule(
        "optimize",
        ("optimize", "faster", "slow", "performance", "speed up"),
        agent="ceo",
        skills=("/dsa", "/arch"),
        sub_agents=("research-director", "backend-engineer"),
        confidence="high",
    ),
    IntentRule(
        "refactor",
        ("refactor", "restructure", "clean up", "technical debt"),
        agent="ceo",
        skills=("/heal",),
        sub_agents=("backend-engineer", "aegis-guardian"),
    ),
    IntentRule(
        "research",
        ("research", "explore", "explain", "how does", "what is"),
        agent="research-director",
        confidence="high",
    ),
    IntentRule(
        "docs",
        ("document", "documentation", "readme", "api docs"),
        agent="research-director",
        sub_agents=("backend-engineer",),
    ),
    IntentRule(
        "audit",
        ("audit", "review", "vulnerability", "compliance"),
        agent="ceo",
        skills=("/security", "/heal"),
        sub_agents=("aegis-guardian",),
        confidence="high",
    ),
    IntentRule(
        "implement",
        ("implement", "create", "build", "add", "develop", "new feature"),
        agent="ceo",
    ),
)

DOMAIN_RULES = (
    DomainRule("security", ("security", "auth", "encrypt", "oauth", "jwt"), skills=("/security",)),
    DomainRule(
        "frontend",
        ("frontend", "ui", "css", "react", "component"),
        skills=("/frontend",),
        sub_agents=("frontend-engineer",),
    ),
    DomainRule("database", ("database", "sql", "query", "migration", "postgres"), skills=("/sql",)),
    DomainRule(
        "infrastructure",
        ("deploy", "docker", "kubernetes", "k8s", "terraform", "infra"),
        skills=("/cloud-infrastructure-mastery",),
    ),
    DomainRule(
        "testing",
        ("test", "testing", "unit test", "integration test"),
        skills=("/testing",),
        sub_agents=("aegis-guardian",),
    ),
    DomainRule(
        "backend",
        ("api", "endpoint", "rest", "grpc", "graphql"),
        skills=("/api-design",),
        sub_agents=("backend-engineer",),
    ),
)

# Intents whose directive demands delegation to the orchestrator before edits
DELEGATING_INTENTS = frozenset({"implement", "debug", "refactor", "optimize", "audit"})
