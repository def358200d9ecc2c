"""
Tests for concierge.orchestration.classifier
==============================================

These tests verify intent, resume and topic-switch classification:
    - RuleBasedClassifier scoring (matched keywords x weight)
    - Resume phrases and affirmatives
    - Topic switches relative to the flow owner
    - ClassifierRules YAML overrides
    - LLMClassifier YES/NO answers with rule fallback
    - create_classifier()

All tests are async (pytest-asyncio with asyncio_mode=auto).
"""

import pytest

from concierge.core.enums import AgentName
from concierge.core.exceptions import ConfigurationError
from concierge.integrations.llm.mock import MockLLMProvider
from concierge.orchestration.classifier import (
    ClassifierRules,
    IntentRule,
    LLMClassifier,
    RuleBasedClassifier,
    create_classifier,
)


# =============================================================================
# Test: Intent classification
# =============================================================================
class TestClassifyIntent:
    """Tests for RuleBasedClassifier.classify_intent()."""

    @pytest.mark.parametrize(
        "utterance, expected",
        [
            ("what's the owner's phone number", AgentName.SUPPORT_CONTACT),
            ("Can I book a table for 4?", AgentName.TABLE_AVAILABILITY),
            ("Do you have vegan dishes?", AgentName.MENU_PRICING),
            ("It's our anniversary", AgentName.CELEBRATION),
            ("What are your opening hours?", AgentName.RESTAURANT_INFO),
        ],
    )
    async def test_intents(self, classifier, utterance: str, expected: AgentName) -> None:
        assert await classifier.classify_intent(utterance) == expected

    async def test_no_match_returns_none(self, classifier) -> None:
        assert await classifier.classify_intent("standard please") is None

    async def test_scores_are_weighted(self, classifier) -> None:
        scores = classifier.scores("owner phone")
        assert scores[AgentName.SUPPORT_CONTACT] == pytest.approx(2.6)
        assert scores[AgentName.MENU_PRICING] == 0

    async def test_single_words_match_whole_words(self, classifier) -> None:
        """'table' must not match inside 'comfortable'."""
        scores = classifier.scores("comfortable")
        assert scores[AgentName.TABLE_AVAILABILITY] == 0

    async def test_tie_keeps_earlier_rule(self) -> None:
        rules = ClassifierRules(
            intents=(
                IntentRule(agent=AgentName.MENU_PRICING, keywords=("x",), weight=1.0),
                IntentRule(agent=AgentName.CELEBRATION, keywords=("x",), weight=1.0),
            )
        )
        assert await RuleBasedClassifier(rules).classify_intent("x") == AgentName.MENU_PRICING


# =============================================================================
# Test: Resume requests
# =============================================================================
class TestResumeRequest:
    """Tests for RuleBasedClassifier.is_resume_request()."""

    async def test_resume_phrase(self, classifier) -> None:
        assert await classifier.is_resume_request("yes, continue the reservation") is True

    async def test_resume_phrase_while_awaiting(self, classifier) -> None:
        assert await classifier.is_resume_request("back to my booking", awaiting_reply=True) is True

    async def test_affirmative_when_not_awaiting(self, classifier) -> None:
        assert await classifier.is_resume_request("Yes!") is True

    async def test_affirmative_ignored_while_awaiting(self, classifier) -> None:
        """A bare "yes" while an agent awaits is an answer, not a resume."""
        assert await classifier.is_resume_request("yes", awaiting_reply=True) is False

    async def test_affirmative_must_be_whole_utterance(self, classifier) -> None:
        assert await classifier.is_resume_request("yes I want the menu") is False

    async def test_unrelated(self, classifier) -> None:
        assert await classifier.is_resume_request("what's on the menu") is False

    async def test_phrases_match_whole_words(self, classifier) -> None:
        """"resume" must not match inside "presume"."""
        assert await classifier.is_resume_request("I presume the terrace is outside") is False
        assert await classifier.is_resume_request("please resume") is True


# =============================================================================
# Test: Topic switches
# =============================================================================
class TestTopicSwitch:
    """Tests for RuleBasedClassifier.is_topic_switch()."""

    async def test_switch_away_from_booking(self, classifier) -> None:
        assert await classifier.is_topic_switch(
            "what's the owner's phone number", AgentName.RESERVATION
        ) is True

    async def test_moving_within_booking_flow(self, classifier) -> None:
        assert await classifier.is_topic_switch(
            "book a table for 4 people", AgentName.RESERVATION
        ) is False

    async def test_unclassified_answer_is_not_a_switch(self, classifier) -> None:
        assert await classifier.is_topic_switch("standard please", AgentName.RESERVATION) is False

    async def test_no_owner(self, classifier) -> None:
        assert await classifier.is_topic_switch("menu", None) is False

    async def test_outside_flow_same_agent(self, classifier) -> None:
        assert await classifier.is_topic_switch("vegan dishes", AgentName.MENU_PRICING) is False


class TestTopicSwitchWhileAwaitingReply:
    """A booking agent asked the guest something; most replies are answers."""

    @pytest.mark.parametrize(
        "reply",
        [
            "My name is Nikos, my email is nikos@example.com and my phone is 6911111111",
            "Grass table please, it's for my wife's birthday",
            "nikos@example.com",
            "standard table",
            "no i meant tomorrow",
        ],
    )
    async def test_answers_stay_in_flow(self, classifier, reply: str) -> None:
        assert await classifier.is_topic_switch(
            reply, AgentName.RESERVATION, awaiting_reply=True
        ) is False

    @pytest.mark.parametrize(
        "utterance",
        [
            "what's the owner's phone number",
            "Do you have vegan dishes?",
            "what are your opening hours",
        ],
    )
    async def test_questions_elsewhere_switch(self, classifier, utterance: str) -> None:
        assert await classifier.is_topic_switch(
            utterance, AgentName.RESERVATION, awaiting_reply=True
        ) is True

    async def test_question_about_the_booking_stays(self, classifier) -> None:
        assert await classifier.is_topic_switch(
            "Can we make it a table for 6 people?", AgentName.RESERVATION, awaiting_reply=True
        ) is False

    @pytest.mark.parametrize("utterance", ["Hello!", "hi", "actually never mind"])
    async def test_greetings_and_cancels_switch(self, classifier, utterance: str) -> None:
        assert await classifier.is_topic_switch(
            utterance, AgentName.TABLE_AVAILABILITY, awaiting_reply=True
        ) is True

    async def test_without_awaiting_keywords_decide(self, classifier) -> None:
        assert await classifier.is_topic_switch(
            "my email is nikos@example.com", AgentName.RESERVATION
        ) is True

    async def test_agents_outside_flow_keep_keyword_rule(self, classifier) -> None:
        assert await classifier.is_topic_switch(
            "my phone is 6911111111", AgentName.MENU_PRICING, awaiting_reply=True
        ) is True


# =============================================================================
# Test: ClassifierRules
# =============================================================================
class TestClassifierRules:
    """Tests for versioned YAML rules."""

    def test_defaults(self) -> None:
        rules = ClassifierRules()
        assert rules.version == "1"
        assert len(rules.intents) == 5
        assert rules.flow_agents == frozenset({AgentName.TABLE_AVAILABILITY, AgentName.RESERVATION})

    async def test_from_yaml_overrides(self, tmp_path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(
            "version: '2'\n"
            "resume_phrases:\n"
            "  - 'pick up where we were'\n"
        )
        rules = ClassifierRules.from_yaml(str(path))
        assert rules.version == "2"
        assert len(rules.intents) == 5
        assert await RuleBasedClassifier(rules).is_resume_request("pick up where we were please")

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError):
            ClassifierRules.from_yaml(str(tmp_path / "missing.yaml"))

    def test_not_a_mapping(self, tmp_path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            ClassifierRules.from_yaml(str(path))

    def test_invalid_content(self, tmp_path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("intents:\n  - agent: PizzaAgent\n    keywords: [pizza]\n")
        with pytest.raises(ConfigurationError):
            ClassifierRules.from_yaml(str(path))


# =============================================================================
# Test: LLMClassifier
# =============================================================================
class TestLLMClassifier:
    """Tests for the LLM-backed classifier."""

    async def test_yes_answer(self) -> None:
        provider = MockLLMProvider()
        provider.queue_response("YES")
        classifier = LLMClassifier(provider, RuleBasedClassifier())
        assert await classifier.is_resume_request("can we go on") is True

    async def test_no_answer(self) -> None:
        provider = MockLLMProvider()
        provider.queue_response("no.")
        classifier = LLMClassifier(provider, RuleBasedClassifier())
        assert await classifier.is_topic_switch("standard table", AgentName.RESERVATION) is False

    async def test_unusable_answer_uses_fallback(self) -> None:
        provider = MockLLMProvider()
        provider.queue_response("Maybe?")
        classifier = LLMClassifier(provider, RuleBasedClassifier())
        assert await classifier.is_resume_request("let's continue") is True

    async def test_provider_failure_uses_fallback(self) -> None:
        provider = MockLLMProvider()
        provider.set_should_fail(True)
        classifier = LLMClassifier(provider, RuleBasedClassifier())
        assert await classifier.is_topic_switch(
            "what's the owner's phone number", AgentName.RESERVATION
        ) is True

    async def test_fallback_sees_awaiting_reply(self) -> None:
        provider = MockLLMProvider()
        provider.set_should_fail(True)
        classifier = LLMClassifier(provider, RuleBasedClassifier())
        assert await classifier.is_topic_switch(
            "my email is nikos@example.com", AgentName.RESERVATION, awaiting_reply=True
        ) is False

    async def test_intent_is_delegated(self) -> None:
        provider = MockLLMProvider()
        classifier = LLMClassifier(provider, RuleBasedClassifier())
        assert await classifier.classify_intent("menu please") == AgentName.MENU_PRICING
        assert provider.call_count == 0

    async def test_no_owner_skips_llm(self) -> None:
        provider = MockLLMProvider()
        classifier = LLMClassifier(provider, RuleBasedClassifier())
        assert await classifier.is_topic_switch("hello", None) is False
        assert provider.call_count == 0


# =============================================================================
# Test: create_classifier
# =============================================================================
class TestCreateClassifier:
    """Tests for the classifier factory."""

    def test_rule_mode(self) -> None:
        assert isinstance(create_classifier("rule"), RuleBasedClassifier)

    def test_llm_mode(self) -> None:
        classifier = create_classifier("llm", llm_provider=MockLLMProvider())
        assert isinstance(classifier, LLMClassifier)

    def test_llm_mode_needs_provider(self) -> None:
        with pytest.raises(ConfigurationError):
            create_classifier("llm")

    def test_unknown_mode(self) -> None:
        with pytest.raises(ConfigurationError):
            create_classifier("magic")
