"""
AI Mediation Service
====================
Routes a student's request through the instructor-selected mode:
input guard, cache lookup, prompt construction, bounded model call,
post-processing, cache store.

Model failures never escape generate(); the student gets the mode's
fallback text instead. Fallback text is not cached.
"""
import logging

from assignai.config import RESPONSE_CACHE_TTL
from assignai.errors import MediationError, MediationTimeout
from assignai.services.ai_modes import NOT_ENABLED_MESSAGE, get_mode
from assignai.services.cache import ResponseCache, make_cache_key
from assignai.services.llm_client import LLMClient

logger = logging.getLogger(__name__)


def build_system_prompt(descriptor, global_instructions='', custom_prompt=''):
    """Mode instructions, then assignment-wide text, then the instructor's own prompt."""
    prompt = descriptor['system_prompt']
    if global_instructions:
        prompt += f"\n\nAssignment Guidelines: {global_instructions}"
    if custom_prompt:
        prompt += f"\n\nInstructor Guidance: {custom_prompt}"
    if descriptor['requirements']:
        prompt += "\n\nYour response MUST:\n" + "\n".join(
            f"- {item}" for item in descriptor['requirements'])
    return prompt


def build_context_text(dependency_answers):
    """Render earlier answers as question/answer pairs, or '' when there are none."""
    if not dependency_answers:
        return ''
    text = "Previous related answers:\n"
    for answer in dependency_answers.values():
        text += (f"Question: {answer.get('questionText', '')}\n"
                 f"Student's Answer: {answer.get('content', '')}\n\n")
    return text


def build_user_message(descriptor, question_text, user_prompt='', student_input='',
                       dependency_answers=None):
    parts = []
    if descriptor['include_context']:
        context = build_context_text(dependency_answers)
        if context:
            parts.append(context.rstrip())

    parts.append(f"Question: {question_text}")

    if descriptor['include_work']:
        parts.append(f"{descriptor['work_label']}: {student_input or 'Not started yet'}")

    if descriptor['request_label']:
        request = user_prompt or descriptor['default_request']
        if request:
            parts.append(f"{descriptor['request_label']}: {request}")

    if descriptor['closing']:
        parts.append(descriptor['closing'])
    return "\n\n".join(parts)


class MediationService:
    """Generates mode-specific AI help for one question.

    Usage:
        mediation = MediationService()
        text = mediation.generate("hints", question_text, user_prompt="where do I start?")
    """

    def __init__(self, llm=None, cache=None):
        self.llm = llm or LLMClient()
        self.cache = cache if cache is not None else ResponseCache(ttl=RESPONSE_CACHE_TTL)

    def generate(self, mode, question_text, user_prompt='', custom_prompt='',
                 student_input='', global_instructions='', dependency_answers=None):
        """Return the AI response text for a question under the given mode."""
        descriptor = get_mode(mode)
        if descriptor is None:
            return NOT_ENABLED_MESSAGE

        fields = {
            'questionText': question_text or '',
            'userPrompt': user_prompt or '',
            'customPrompt': custom_prompt or '',
            'studentInput': student_input or '',
            'globalInstructions': global_instructions or '',
            'dependencyAnswers': dependency_answers or {},
        }

        guard_field = descriptor['guard_field']
        if guard_field and len(fields[guard_field].strip()) < descriptor['min_length']:
            return descriptor['guard_message']

        cache_key = make_cache_key(mode, *[fields[name] for name in descriptor['cache_fields']])
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("Using cached %s response", mode)
            return cached

        messages = [
            {"role": "system", "content": build_system_prompt(
                descriptor, fields['globalInstructions'], fields['customPrompt'])},
            {"role": "user", "content": build_user_message(
                descriptor, fields['questionText'], fields['userPrompt'],
                fields['studentInput'], fields['dependencyAnswers'])},
        ]

        logger.info("Generating %s response for question %r", mode, fields['questionText'][:40])
        try:
            result = self.llm.complete(
                messages,
                max_tokens=descriptor['max_tokens'],
                timeout=descriptor['timeout'],
                temperature=descriptor['temperature'],
                **descriptor['options']
            )
        except MediationTimeout as e:
            logger.warning("%s request timed out: %s", mode, e)
            return descriptor['timeout_message']
        except MediationError as e:
            logger.error("Error generating %s response: %s", mode, e)
            return descriptor['error_message']

        if descriptor['post_processor']:
            result = descriptor['post_processor'](result)

        self.cache.set(cache_key, result)
        return result

    # ─────────────────────────────────────────────────────
    # Per-mode entry points
    # ─────────────────────────────────────────────────────

    def generate_comparison(self, question_text, student_input='', global_instructions='',
                            custom_prompt=''):
        return self.generate('compare', question_text, custom_prompt=custom_prompt,
                             student_input=student_input,
                             global_instructions=global_instructions)

    def generate_hint(self, question_text, user_prompt, custom_prompt='', student_input='',
                      global_instructions='', dependency_answers=None):
        return self.generate('hints', question_text, user_prompt, custom_prompt,
                             student_input, global_instructions, dependency_answers)

    def generate_guidance(self, question_text, user_prompt, custom_prompt='', student_input='',
                          global_instructions='', dependency_answers=None):
        return self.generate('guidance', question_text, user_prompt, custom_prompt,
                             student_input, global_instructions, dependency_answers)

    def generate_examples(self, question_text, user_prompt, custom_prompt='', student_input='',
                          global_instructions='', dependency_answers=None):
        return self.generate('examples', question_text, user_prompt, custom_prompt,
                             student_input, global_instructions, dependency_answers)

    def generate_step_framework(self, question_text, user_prompt, custom_prompt='',
                                student_input='', global_instructions='',
                                dependency_answers=None):
        return self.generate('step_framework', question_text, user_prompt, custom_prompt,
                             student_input, global_instructions, dependency_answers)

    def generate_socratic_questions(self, question_text, user_prompt='', custom_prompt='',
                                    student_input='', global_instructions='',
                                    dependency_answers=None):
        return self.generate('socratic', question_text, user_prompt, custom_prompt,
                             student_input, global_instructions, dependency_answers)

    def generate_error_detection(self, question_text, student_input, user_prompt='',
                                 custom_prompt='', global_instructions='',
                                 dependency_answers=None):
        return self.generate('error_detection', question_text, user_prompt, custom_prompt,
                             student_input, global_instructions, dependency_answers)

    def clear_cache(self):
        """Drop every cached response, e.g. after an assignment is reconfigured."""
        self.cache.clear()
        logger.info("Cleared AI response cache")
