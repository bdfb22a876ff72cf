"""
Test: AI mediation: guards, caching, prompt assembly, fallbacks.
"""
from assignai.errors import MediationError, MediationTimeout
from assignai.services.ai_modes import AI_MODES, NOT_ENABLED_MESSAGE
from assignai.services.cache import ResponseCache
from assignai.services.mediation_service import (
    MediationService, build_context_text, build_system_prompt,
)

from conftest import FakeLLM

QUESTION = "A car travels 120 km in 2 hours. What is its average speed?"


def make_service(*replies, default="Think about distance over time. What do you divide?"):
    llm = FakeLLM(list(replies), default=default)
    return MediationService(llm=llm, cache=ResponseCache(ttl=60)), llm


class TestCacheDeterminism:
    def test_identical_requests_call_model_once(self):
        service, llm = make_service()
        first = service.generate_hint(QUESTION, "how do I start?", "Be gentle", "nothing yet")
        second = service.generate_hint(QUESTION, "how do I start?", "Be gentle", "nothing yet")
        assert first == second
        assert llm.call_count == 1

    def test_different_prompt_misses_cache(self):
        service, llm = make_service()
        service.generate_hint(QUESTION, "how do I start?")
        service.generate_hint(QUESTION, "what formula applies?")
        assert llm.call_count == 2

    def test_modes_do_not_share_entries(self):
        service, llm = make_service()
        service.generate("hints", QUESTION, "how do I start?")
        service.generate("guidance", QUESTION, "how do I start?")
        assert llm.call_count == 2

    def test_dependency_answers_part_of_key(self):
        service, llm = make_service()
        deps_a = {"q1": {"questionText": "Distance?", "content": "120 km"}}
        deps_b = {"q1": {"questionText": "Distance?", "content": "100 km"}}
        service.generate_hint(QUESTION, "help", dependency_answers=deps_a)
        service.generate_hint(QUESTION, "help", dependency_answers=deps_b)
        assert llm.call_count == 2

    def test_clear_cache(self):
        service, llm = make_service()
        service.generate_hint(QUESTION, "how do I start?")
        service.clear_cache()
        service.generate_hint(QUESTION, "how do I start?")
        assert llm.call_count == 2


class TestInputGuards:
    def test_short_hint_prompt(self):
        service, llm = make_service()
        result = service.generate_hint(QUESTION, "hi")
        assert "more details" in result
        assert llm.call_count == 0

    def test_whitespace_prompt_counts_as_short(self):
        service, llm = make_service()
        result = service.generate_guidance(QUESTION, "   a   ")
        assert result == AI_MODES["guidance"]["guard_message"]
        assert llm.call_count == 0

    def test_error_detection_needs_work(self):
        service, llm = make_service()
        result = service.generate_error_detection(QUESTION, "")
        assert "provide your work" in result
        assert llm.call_count == 0

    def test_compare_needs_question(self):
        service, llm = make_service()
        result = service.generate_comparison("abc")
        assert result == AI_MODES["compare"]["guard_message"]
        assert llm.call_count == 0

    def test_socratic_has_no_guard(self):
        service, llm = make_service(default="1. What is given?\n2. What is asked?")
        result = service.generate_socratic_questions(QUESTION)
        assert result.startswith("1.")
        assert llm.call_count == 1

    def test_no_ai_never_calls_model(self):
        service, llm = make_service()
        assert service.generate("no_ai", QUESTION, "please help") == NOT_ENABLED_MESSAGE
        assert service.generate("bogus", QUESTION, "please help") == NOT_ENABLED_MESSAGE
        assert llm.call_count == 0


class TestFailures:
    def test_timeout_returns_mode_message(self):
        service, _ = make_service(MediationTimeout("slow"))
        result = service.generate_hint(QUESTION, "how do I start?")
        assert result == AI_MODES["hints"]["timeout_message"]

    def test_error_returns_mode_message(self):
        service, _ = make_service(MediationError("boom"))
        result = service.generate_examples(QUESTION, "show me similar problems")
        assert result == AI_MODES["examples"]["error_message"]

    def test_fallback_not_cached(self):
        service, llm = make_service(MediationTimeout("slow"))
        service.generate_hint(QUESTION, "how do I start?")
        result = service.generate_hint(QUESTION, "how do I start?")
        assert llm.call_count == 2
        assert result == "Think about distance over time. What do you divide?"


class TestPromptAssembly:
    def test_global_before_instructor_guidance(self):
        service, llm = make_service()
        service.generate_guidance(QUESTION, "what's the approach?", custom_prompt="Mention units",
                                  global_instructions="Use SI units")
        system = llm.calls[0]["messages"][0]["content"]
        assert "Assignment Guidelines: Use SI units" in system
        assert "Instructor Guidance: Mention units" in system
        assert system.index("Assignment Guidelines") < system.index("Instructor Guidance")
        assert system.index("Instructor Guidance") < system.index("Your response MUST:")

    def test_user_message_contents(self):
        service, llm = make_service()
        deps = {"q1": {"questionText": "What is the distance?", "content": "120 km"}}
        service.generate_hint(QUESTION, "stuck on the formula", student_input="speed = ?",
                              dependency_answers=deps)
        user = llm.calls[0]["messages"][1]["content"]
        assert "Previous related answers:" in user
        assert "Student's Answer: 120 km" in user
        assert f"Question: {QUESTION}" in user
        assert "Student's current work: speed = ?" in user
        assert "Student's request for help: stuck on the formula" in user
        assert user.index("Previous related answers:") < user.index(f"Question: {QUESTION}")

    def test_not_started_placeholder(self):
        service, llm = make_service()
        service.generate_hint(QUESTION, "where to begin?")
        assert "Not started yet" in llm.calls[0]["messages"][1]["content"]

    def test_default_request_used(self):
        service, llm = make_service(default="1. What do you know?")
        service.generate_socratic_questions(QUESTION)
        assert AI_MODES["socratic"]["default_request"] in llm.calls[0]["messages"][1]["content"]

    def test_compare_omits_student_work(self):
        service, llm = make_service(default="Speed is 60 km/h.")
        service.generate_comparison(QUESTION, student_input="my secret attempt")
        assert "my secret attempt" not in llm.calls[0]["messages"][1]["content"]

    def test_mode_budget_and_options(self):
        service, llm = make_service()
        service.generate_hint(QUESTION, "how do I start?")
        call = llm.calls[0]
        assert call["max_tokens"] == 150
        assert call["timeout"] == 15
        assert call["options"] == {"presence_penalty": 0.6, "frequency_penalty": 0.3}

    def test_build_system_prompt_without_extras(self):
        prompt = build_system_prompt(AI_MODES["socratic"])
        assert "Assignment Guidelines" not in prompt
        assert "Instructor Guidance" not in prompt

    def test_build_context_text_empty(self):
        assert build_context_text({}) == ''
        assert build_context_text(None) == ''


class TestPostProcessing:
    def test_hint_truncated(self):
        service, _ = make_service(default="x" * 400)
        result = service.generate_hint(QUESTION, "how do I start?")
        assert len(result) == 283
        assert result.endswith("...")

    def test_compare_note_appended(self):
        service, _ = make_service(default="Speed is 60 km/h.")
        result = service.generate_comparison(QUESTION)
        assert result.startswith("Speed is 60 km/h.")
        assert "model answer" in result

    def test_socratic_prose_numbered(self):
        service, _ = make_service(default="Think first. What is being measured? What units apply?")
        result = service.generate_socratic_questions(QUESTION)
        assert "1. What is being measured?" in result
        assert "2. What units apply?" in result

    def test_cached_value_is_post_processed(self):
        service, llm = make_service(default="x" * 400)
        service.generate_hint(QUESTION, "how do I start?")
        result = service.generate_hint(QUESTION, "how do I start?")
        assert llm.call_count == 1
        assert result.endswith("...")
