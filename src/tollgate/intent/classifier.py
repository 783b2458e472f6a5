"""
Prompt intent classification.

Pure functions over a normalized prompt; no state is read or written here.
"""

from pydantic import BaseModel, ConfigDict, Field

from tollgate.intent.rules import DOMAIN_RULES, GREETINGS, INTENT_RULES, STATUS_TRIGGERS

UNCLASSIFIED = "unclassified"


class Intent(BaseModel):
    """
    Classification of one prompt.

    Attributes:
        intent_type: debug, optimize, ..., implement, or "unclassified"
        domain: First matched domain, or ""
        skills: Skills to invoke, in match order without duplicates
        agent: Primary agent to route to
        sub_agents: Supporting agents, in match order without duplicates
        research_required: Whether fresh research must precede code
        confidence: high, medium or low
    """

    model_config = ConfigDict(frozen=True)

    intent_type: str = UNCLASSIFIED
    domain: str = ""
    skills: list[str] = Field(default_factory=list)
    agent: str = "ceo"
    sub_agents: list[str] = Field(default_factory=list)
    research_required: bool = True
    confidence: str = "low"

    @property
    def classified(self) -> bool:
        return self.intent_type != UNCLASSIFIED or bool(self.domain)


def normalize(prompt: str) -> str:
    return prompt.lower().strip()


def is_trivial(prompt: str) -> bool:
    """Greeting or acknowledgement, matched exactly."""
    return normalize(prompt) in GREETINGS


def is_status_query(prompt: str) -> bool:
    text = normalize(prompt)
    return any(trigger in text for trigger in STATUS_TRIGGERS)


def _matches(text: str, keywords: tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


def _append_unique(items: list[str], new: tuple[str, ...]) -> None:
    for item in new:
        if item not in items:
            items.append(item)


def classify(prompt: str) -> Intent:
    """
    Classify a prompt by keyword tables.

    The first matching intent rule sets type, agent and confidence; domain
    rules then add skills and sub-agents. A prompt matching neither is
    unclassified with low confidence.
    """
    text = normalize(prompt)
    intent_type = ""
    agent = ""
    confidence = "medium"
    skills: list[str] = []
    sub_agents: list[str] = []

    for rule in INTENT_RULES:
        if _matches(text, rule.keywords):
            intent_type = rule.name
            agent = rule.agent
            confidence = rule.confidence
            skills.extend(rule.skills)
            sub_agents.extend(rule.sub_agents)
            break

    domain = ""
    for rule in DOMAIN_RULES:
        if _matches(text, rule.keywords):
            domain = domain or rule.name
            _append_unique(skills, rule.skills)
            _append_unique(sub_agents, rule.sub_agents)

    if not intent_type and not domain:
        intent_type = UNCLASSIFIED
        confidence = "low"

    return Intent(
        intent_type=intent_type,
        domain=domain,
        skills=skills,
        agent=agent or "ceo",
        sub_agents=sub_agents,
        research_required=True,
        confidence=confidence,
    )
