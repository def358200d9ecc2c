"""
concierge.orchestration.classifier - Intent, Resume & Topic-Switch Classifier
===============================================================================

One pluggable interface answers the three questions the interrupt manager
asks about an utterance:

    classify_intent(utterance)                 → which agent does it target?
    is_resume_request(utterance, awaiting_reply) → "let's continue the booking"?
    is_topic_switch(utterance, active_agent, awaiting_reply)
                                               → left the flow in progress?

Implementations:
    - RuleBasedClassifier:  deterministic, driven by versioned ClassifierRules
                            (default; overridable from YAML)
    - LLMClassifier:        asks the LLM YES/NO, falls back to an injected
                            rule classifier when the answer is unusable

Intent scoring:
    score(agent) = (number of matched keywords) x weight
    Highest score wins; ties keep the earlier rule. No match → None.

Topic switches while a booking agent awaits a reply:
    The guest is usually answering (name, email, phone, table type, a note
    about the occasion), and those answers share words with other intents.
    Only a bare greeting, a cancel phrase, or a question that targets an
    agent outside the booking flow counts as a switch.
"""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from concierge.core.enums import AgentName
from concierge.core.exceptions import ConfigurationError
from concierge.integrations.llm.base import BaseLLMProvider


logger = structlog.get_logger()

_TRAILING_PUNCTUATION = ".!?,; "


# =============================================================================
# Rules
# =============================================================================
class IntentRule(BaseModel):
    """Keywords that point at one agent, with the rule's weight."""

    model_config = ConfigDict(frozen=True)

    agent: AgentName = Field(description="Agent the keywords point at")
    keywords: tuple[str, ...] = Field(description="Lowercase words or phrases")
    weight: float = Field(default=1.0, gt=0, description="Score per matched keyword")


DEFAULT_INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        agent=AgentName.TABLE_AVAILABILITY,
        keywords=(
            "book", "reserve", "table", "reservation", "available", "date", "time",
            "party", "people", "guests", "confirm", "booking", "seat",
        ),
        weight=2.0,
    ),
    IntentRule(
        agent=AgentName.MENU_PRICING,
        keywords=(
            "menu", "dish", "food", "eat", "price", "cost", "order", "meal",
            "vegetarian", "vegan", "gluten", "diet", "cuisine", "speciality",
            "what do you serve", "dishes",
        ),
        weight=1.8,
    ),
    IntentRule(
        agent=AgentName.CELEBRATION,
        keywords=(
            "birthday", "anniversary", "celebration", "special", "occasion",
            "cake", "flower", "surprise", "romantic", "proposal", "wedding",
        ),
        weight=2.2,
    ),
    IntentRule(
        agent=AgentName.RESTAURANT_INFO,
        keywords=(
            "about", "info", "hours", "open", "close", "atmosphere",
            "style", "rating", "review", "description", "tell me about",
        ),
        weight=1.0,
    ),
    IntentRule(
        agent=AgentName.SUPPORT_CONTACT,
        keywords=(
            "help", "contact", "owner", "manager", "phone", "email",
            "problem", "issue", "complaint", "question", "assistance",
        ),
        weight=1.3,
    ),
)

DEFAULT_RESUME_PHRASES: tuple[str, ...] = (
    "resume",
    "continue the reservation",
    "continue the booking",
    "continue my reservation",
    "continue my booking",
    "continue where we left off",
    "continue with the booking",
    "continue with the reservation",
    "back to my booking",
    "back to my reservation",
    "back to the booking",
    "back to the reservation",
    "let's continue",
    "lets continue",
    "let's proceed",
    "lets proceed",
)

DEFAULT_AFFIRMATIVES: frozenset[str] = frozenset({
    "yes", "yeah", "yep", "sure", "ok", "okay", "continue", "proceed",
    "yes please", "go ahead", "let's do it", "lets do it",
})

DEFAULT_QUESTION_OPENERS: tuple[str, ...] = (
    "what", "what's", "whats", "when", "where", "who", "how", "why", "which",
    "do you", "does", "can you", "could you", "is there", "are you", "tell me",
)

DEFAULT_GREETINGS: frozenset[str] = frozenset({
    "hello", "hi", "hey", "good evening", "good morning", "good afternoon",
})

DEFAULT_CANCEL_PHRASES: tuple[str, ...] = (
    "never mind", "nevermind", "forget it", "forget the booking", "forget the reservation",
)


class ClassifierRules(BaseModel):
    """Versioned keyword rules for the rule-based classifier.

    Attributes:
        version: Identifier of this rule set (reported in logs).
        intents: Intent rules in priority order.
        resume_phrases: Phrases (matched on word boundaries) that mark a
            resume request.
        affirmatives: Whole-utterance answers that count as "resume" when
            no direct reply is awaited.
        flow_agents: Agents that together own the booking flow; moving
            between them is not a topic switch.
        question_openers: Leading words that make an answer-awaited
            utterance a question.
        greetings: Whole-utterance greetings that leave an awaited answer.
        cancel_phrases: Phrases that abandon an awaited answer.
    """

    model_config = ConfigDict(frozen=True)

    version: str = Field(default="1", description="Rule set version")
    intents: tuple[IntentRule, ...] = Field(default=DEFAULT_INTENT_RULES)
    resume_phrases: tuple[str, ...] = Field(default=DEFAULT_RESUME_PHRASES)
    affirmatives: frozenset[str] = Field(default=DEFAULT_AFFIRMATIVES)
    flow_agents: frozenset[AgentName] = Field(
        default=frozenset({AgentName.TABLE_AVAILABILITY, AgentName.RESERVATION}),
    )
    question_openers: tuple[str, ...] = Field(default=DEFAULT_QUESTION_OPENERS)
    greetings: frozenset[str] = Field(default=DEFAULT_GREETINGS)
    cancel_phrases: tuple[str, ...] = Field(default=DEFAULT_CANCEL_PHRASES)

    @classmethod
    def from_yaml(cls, path: str) -> ClassifierRules:
        """Load rules from a YAML file; omitted keys keep their defaults.

        Raises:
            ConfigurationError: If the file is missing or invalid.
        """
        rules_path = Path(path)
        if not rules_path.exists():
            raise ConfigurationError(
                f"Classifier rules file not found: {path}",
                details={"path": path},
            )
        with open(rules_path) as f:
            data: Any = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Classifier rules file must contain a mapping",
                details={"path": path},
            )
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid classifier rules in {path}",
                details={"path": path, "errors": e.errors(include_url=False)},
            ) from e


def _normalize(utterance: str) -> str:
    return " ".join(utterance.lower().split())


def _mentions(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


# =============================================================================
# Classifier Interface
# =============================================================================
class Classifier(ABC):
    """Answers intent, resume and topic-switch questions about an utterance."""

    @abstractmethod
    async def classify_intent(self, utterance: str) -> Optional[AgentName]:
        """Return the agent the utterance targets, or None."""

    @abstractmethod
    async def is_resume_request(self, utterance: str, *, awaiting_reply: bool = False) -> bool:
        """Return True if the guest asks to continue an interrupted flow."""

    @abstractmethod
    async def is_topic_switch(
        self,
        utterance: str,
        active_agent: Optional[AgentName],
        *,
        awaiting_reply: bool = False,
    ) -> bool:
        """Return True if the utterance leaves the flow owned by ``active_agent``.

        ``awaiting_reply`` is True when ``active_agent`` asked the guest a
        question this utterance may be answering.
        """


# =============================================================================
# Rule-Based Classifier
# =============================================================================
class RuleBasedClassifier(Classifier):
    """Deterministic keyword classifier.

    Example:
        >>> classifier = RuleBasedClassifier()
        >>> await classifier.classify_intent("what's the owner's phone number")
        <AgentName.SUPPORT_CONTACT: 'SupportContactAgent'>
        >>> await classifier.is_resume_request("yes, continue the reservation")
        True
    """

    def __init__(self, rules: Optional[ClassifierRules] = None) -> None:
        self._rules = rules or ClassifierRules()

    @property
    def rules(self) -> ClassifierRules:
        return self._rules

    def scores(self, utterance: str) -> dict[AgentName, float]:
        """Score every intent rule against the utterance."""
        text = _normalize(utterance)
        return {
            rule.agent: sum(1 for kw in rule.keywords if _mentions(text, kw)) * rule.weight
            for rule in self._rules.intents
        }

    async def classify_intent(self, utterance: str) -> Optional[AgentName]:
        best: Optional[AgentName] = None
        best_score = 0.0
        for agent, score in self.scores(utterance).items():
            if score > best_score:
                best, best_score = agent, score
        return best

    async def is_resume_request(self, utterance: str, *, awaiting_reply: bool = False) -> bool:
        text = _normalize(utterance)
        if any(_mentions(text, phrase) for phrase in self._rules.resume_phrases):
            return True
        if awaiting_reply:
            return False
        return text.strip(_TRAILING_PUNCTUATION) in self._rules.affirmatives

    async def is_topic_switch(
        self,
        utterance: str,
        active_agent: Optional[AgentName],
        *,
        awaiting_reply: bool = False,
    ) -> bool:
        if active_agent is None:
            return False
        in_flow = active_agent in self._rules.flow_agents
        if awaiting_reply and in_flow:
            text = _normalize(utterance)
            if self._leaves_answer(text):
                return True
            if not self._is_question(text):
                return False
        intent = await self.classify_intent(utterance)
        if intent is None:
            return False
        related = self._rules.flow_agents if in_flow else {active_agent}
        return intent not in related

    def _leaves_answer(self, text: str) -> bool:
        if text.strip(_TRAILING_PUNCTUATION) in self._rules.greetings:
            return True
        return any(_mentions(text, phrase) for phrase in self._rules.cancel_phrases)

    def _is_question(self, text: str) -> bool:
        if text.rstrip().endswith("?"):
            return True
        return any(
            re.match(rf"{re.escape(opener)}\b", text) is not None
            for opener in self._rules.question_openers
        )


# =============================================================================
# LLM Classifier
# =============================================================================
RESUME_PROMPT = """Analyze this guest message to determine if they want to resume a previous conversation or booking process.

GUEST MESSAGE: "{utterance}"

Examples of RESUME intent:
- "let's continue the reservation"
- "back to my booking"
- "continue where we left off"
- "yes let's proceed"
- "resume my reservation"

Examples of NOT resume intent:
- "hello"
- "what's your menu"
- "new reservation"
- "standard table"

Answer YES or NO."""

TOPIC_SWITCH_PROMPT = """You are a conversation analyst. The assistant ({active_agent}) is waiting for the guest to provide information to continue a booking (e.g., choosing a table type or providing contact details).

The guest's latest message is: "{utterance}"

Is this message a change of topic or an unrelated greeting, rather than an answer to the assistant's previous question?

Examples of INTERRUPTIONS (YES):
- "hello"
- "what's your menu"
- "what are your hours"
- "can you tell me about your restaurant"
- "actually never mind"

Examples of CONTINUATIONS (NO):
- "standard table please"
- "anniversary table"
- "grass table"
- "my name is John"
- "john@email.com"
- "yes that works"
- "no i meant tomorrow"

Answer YES or NO with a single word."""


class LLMClassifier(Classifier):
    """Asks the LLM resume and topic-switch questions.

    Intent classification, and any LLM answer that is not a clear YES or NO
    (including errors and timeouts), is delegated to ``fallback``.
    """

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        fallback: Classifier,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._llm = llm_provider
        self._fallback = fallback
        self._timeout = timeout_seconds
        self._logger = logger.bind(component="llm_classifier")

    async def classify_intent(self, utterance: str) -> Optional[AgentName]:
        return await self._fallback.classify_intent(utterance)

    async def is_resume_request(self, utterance: str, *, awaiting_reply: bool = False) -> bool:
        answer = await self._ask(RESUME_PROMPT.format(utterance=utterance))
        if answer is None:
            return await self._fallback.is_resume_request(utterance, awaiting_reply=awaiting_reply)
        return answer

    async def is_topic_switch(
        self,
        utterance: str,
        active_agent: Optional[AgentName],
        *,
        awaiting_reply: bool = False,
    ) -> bool:
        if active_agent is None:
            return False
        answer = await self._ask(
            TOPIC_SWITCH_PROMPT.format(utterance=utterance, active_agent=active_agent.value)
        )
        if answer is None:
            return await self._fallback.is_topic_switch(
                utterance, active_agent, awaiting_reply=awaiting_reply
            )
        return answer

    async def _ask(self, prompt: str) -> Optional[bool]:
        try:
            response = await asyncio.wait_for(
                self._llm.generate(prompt, temperature=0.0, max_tokens=5),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            self._logger.warning("classifier_llm_timed_out")
            return None
        except Exception as e:
            self._logger.warning("classifier_llm_failed", error=str(e))
            return None

        word = response.content.strip().strip(_TRAILING_PUNCTUATION).upper()
        if word == "YES":
            return True
        if word == "NO":
            return False
        self._logger.warning("classifier_llm_unusable", raw=response.content[:50])
        return None


def create_classifier(
    mode: str = "rule",
    *,
    rules_path: Optional[str] = None,
    llm_provider: Optional[BaseLLMProvider] = None,
    timeout_seconds: float = 10.0,
) -> Classifier:
    """Build the configured classifier.

    Raises:
        ConfigurationError: For an unknown mode, or "llm" without a provider.
    """
    rules = ClassifierRules.from_yaml(rules_path) if rules_path else ClassifierRules()
    rule_classifier = RuleBasedClassifier(rules)
    if mode == "rule":
        return rule_classifier
    if mode == "llm":
        if llm_provider is None:
            raise ConfigurationError("The llm classifier needs an LLM provider")
        return LLMClassifier(llm_provider, rule_classifier, timeout_seconds=timeout_seconds)
    raise ConfigurationError(
        f"Unknown classifier mode: '{mode}'",
        details={"mode": mode, "supported": ["rule", "llm"]},
    )
