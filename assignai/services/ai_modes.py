"""
AI Assistance Modes
===================
One descriptor per instructor-selectable mode. The mediation service
builds every request from these, so adding a mode means adding an entry
here, not another handler.

Post-processors are pure string functions and are tested on their own.
"""
import re


# ═══════════════════════════════════════════════════════
# POST-PROCESSORS
# ═══════════════════════════════════════════════════════

HINT_MAX_CHARS = 300
HINT_TRUNCATE_AT = 280

MODEL_ANSWER_NOTE = (
    "\n\n---\n*Note: This is a model answer for educational purposes. Your approach "
    "may differ while still being valid. Focus on understanding the concepts and "
    "reasoning rather than memorizing this specific answer.*"
)

NUMBERED_LINE = re.compile(r'^\s*\d+\.', re.MULTILINE)
PARENTHETICAL = re.compile(r'\s*\([^()]*\)')
QUESTION_SENTENCE = re.compile(r'[^.?!\n]*\?')


def truncate_hint(text):
    """Cut overlong hints so a hint cannot turn into a worked solution."""
    if len(text) > HINT_MAX_CHARS:
        return text[:HINT_TRUNCATE_AT] + "..."
    return text


def append_model_answer_note(text):
    return text + MODEL_ANSWER_NOTE


def format_socratic_questions(text):
    """Reformat prose into a numbered question list.

    Replies that already contain a numbered list, or that contain no
    questions at all, are returned unchanged.
    """
    if NUMBERED_LINE.search(text):
        return text

    questions = []
    for match in QUESTION_SENTENCE.findall(PARENTHETICAL.sub('', text)):
        question = match.strip()
        if len(question) > 1:
            questions.append(question)
    if not questions:
        return text

    lines = ["Consider these questions to guide your thinking:", ""]
    lines.extend(f"{i}. {question}" for i, question in enumerate(questions, 1))
    lines.append("")
    lines.append("Reflecting on these questions will help you develop a deeper "
                 "understanding of the problem.")
    return "\n".join(lines)


# ═══════════════════════════════════════════════════════
# MODE DEFINITIONS
# ═══════════════════════════════════════════════════════

NOT_ENABLED_MESSAGE = "AI assistance is not enabled for this question."

TUTOR_CACHE_FIELDS = (
    'questionText', 'userPrompt', 'customPrompt', 'studentInput',
    'globalInstructions', 'dependencyAnswers',
)

AI_MODES = {
    "compare": {
        "label": "Model answer for comparison",
        "system_prompt": (
            "You are a knowledgeable tutor. Write an educational model answer to the "
            "assignment question you are given. The answer should be well structured, "
            "show the reasoning steps and the work where applicable, explain the key "
            "concepts, and use language appropriate to the subject. The student will "
            "compare it with their own work to learn from the differences."
        ),
        "requirements": [],
        "max_tokens": 800,
        "timeout": 20,
        "temperature": 0.7,
        "guard_field": "questionText",
        "min_length": 5,
        "guard_message": (
            "I need a complete question to provide a model answer. "
            "Please make sure the question text is filled in."
        ),
        "include_work": False,
        "include_context": False,
        "work_label": None,
        "request_label": None,
        "default_request": None,
        "closing": "Provide a complete model answer to this question.",
        "cache_fields": ('questionText', 'customPrompt', 'globalInstructions'),
        "options": {},
        "post_processor": append_model_answer_note,
        "timeout_message": "Request timed out. Please try again.",
        "error_message": "There was an error generating the model answer. Please try again.",
    },
    "hints": {
        "label": "Hints",
        "system_prompt": (
            "You are a tutor who gives short, targeted hints that build critical thinking.\n\n"
            "When hinting:\n"
            "1. Never give a complete solution or the final answer\n"
            "2. Ask guiding questions that lead the student to discover the next step\n"
            "3. Point at the relevant concept or formula without applying it\n"
            "4. If the student is completely stuck, reveal only the first step\n"
            "5. Match the hint to the student's current understanding"
        ),
        "requirements": [
            "Be under 80 words",
            "Focus on the approach rather than the final answer",
            "Leave the key insight for the student to find",
            "End with a question that guides the student's next step",
        ],
        "max_tokens": 150,
        "timeout": 15,
        "temperature": 0.7,
        "guard_field": "userPrompt",
        "min_length": 3,
        "guard_message": (
            "Please provide more details about what you're struggling with. A good hint "
            "request names the concept or step you're stuck on."
        ),
        "include_work": True,
        "include_context": True,
        "work_label": "Student's current work",
        "request_label": "Student's request for help",
        "default_request": None,
        "closing": "Respond with a brief hint that promotes critical thinking without giving away the answer.",
        "cache_fields": TUTOR_CACHE_FIELDS,
        "options": {"presence_penalty": 0.6, "frequency_penalty": 0.3},
        "post_processor": truncate_hint,
        "timeout_message": (
            "Request timed out. Please try asking for a more specific hint "
            "about a particular concept or step."
        ),
        "error_message": (
            "I couldn't generate a hint right now. Try asking about a specific "
            "concept or step you're struggling with."
        ),
    },
    "guidance": {
        "label": "Process guidance",
        "system_prompt": (
            "You are a tutor who gives process guidance so students build their own "
            "problem-solving skills.\n\n"
            "When guiding:\n"
            "1. Never provide a complete solution\n"
            "2. Offer a structured methodology for approaching the problem\n"
            "3. Encourage the student to reflect on their own thinking\n"
            "4. Suggest general strategies without applying them to this problem\n"
            "5. Model how an expert would think about it without doing the work"
        ),
        "requirements": [
            "Provide a structured approach of 3-5 steps",
            "Focus on methodology, not problem-specific execution",
            "Include a self-assessment prompt at each step",
            "End with a question that helps the student check their understanding",
        ],
        "max_tokens": 300,
        "timeout": 15,
        "temperature": 0.7,
        "guard_field": "userPrompt",
        "min_length": 3,
        "guard_message": (
            "Please provide more details about which part of the problem you need "
            "guidance on."
        ),
        "include_work": True,
        "include_context": True,
        "work_label": "Student's current work",
        "request_label": "Student's request for guidance",
        "default_request": None,
        "closing": "Provide an approach that helps the student think through this problem without giving away the solution.",
        "cache_fields": TUTOR_CACHE_FIELDS,
        "options": {},
        "post_processor": None,
        "timeout_message": "Request timed out. Consider breaking your question into smaller parts.",
        "error_message": (
            "I couldn't generate guidance right now. Please try asking a more specific "
            "question about your approach."
        ),
    },
    "examples": {
        "label": "Worked examples",
        "system_prompt": (
            "You are a tutor who explains concepts through analogous examples.\n\n"
            "Your examples should:\n"
            "1. Be clearly different from the student's own question\n"
            "2. Illustrate the underlying principle rather than the exact problem\n"
            "3. Show both the process and the result\n"
            "4. Move from simpler to more nuanced cases\n"
            "5. Point out common misconceptions"
        ),
        "requirements": [
            "Provide 2-3 distinct examples of the concept or method",
            "Explain why each example is relevant",
            "NOT solve the student's specific problem",
            "End with a suggestion for applying the idea to their own question",
        ],
        "max_tokens": 700,
        "timeout": 15,
        "temperature": 0.7,
        "guard_field": "userPrompt",
        "min_length": 3,
        "guard_message": (
            "Please provide more details about what kind of examples would help. "
            "Which concept or method are you trying to understand?"
        ),
        "include_work": True,
        "include_context": True,
        "work_label": "Student's current work",
        "request_label": "Student's request for examples",
        "default_request": None,
        "closing": "Give analogous examples that teach the method without solving this question.",
        "cache_fields": TUTOR_CACHE_FIELDS,
        "options": {},
        "post_processor": None,
        "timeout_message": "Request timed out. Please try asking for examples of a more specific concept.",
        "error_message": (
            "There was an error generating examples. Please try asking about a more "
            "specific concept or technique."
        ),
    },
    "step_framework": {
        "label": "Step-by-step framework",
        "system_prompt": (
            "You are a tutor who teaches problem-solving methods. Give a step-by-step "
            "framework that teaches the process, not the solution.\n\n"
            "Your framework should:\n"
            "1. Break the process into clear sequential steps\n"
            "2. Explain the purpose of each step\n"
            "3. Mark decision points where different approaches are possible\n"
            "4. Say what to verify at critical stages\n"
            "5. Apply to similar problems in the same domain"
        ),
        "requirements": [
            "Provide 4-6 steps",
            "Include a guiding question at each step",
            "NOT contain numbers or content from the specific solution",
            "Finish with a self-check step",
        ],
        "max_tokens": 600,
        "timeout": 15,
        "temperature": 0.7,
        "guard_field": "userPrompt",
        "min_length": 3,
        "guard_message": (
            "Please provide more details about where you are in the problem so the "
            "framework can start from there."
        ),
        "include_work": True,
        "include_context": True,
        "work_label": "Current work",
        "request_label": "The student is asking",
        "default_request": "Please provide a step-by-step framework for solving this problem.",
        "closing": "Outline a framework the student can follow on their own.",
        "cache_fields": TUTOR_CACHE_FIELDS,
        "options": {},
        "post_processor": None,
        "timeout_message": "Request timed out. Please try with a simpler question.",
        "error_message": (
            "There was an error generating a step-by-step framework. Please try again "
            "with a more specific request."
        ),
    },
    "socratic": {
        "label": "Socratic questions",
        "system_prompt": (
            "You are a tutor using the Socratic method. Your questions should:\n"
            "1. Lead the student to discover insights on their own\n"
            "2. Move from foundational understanding to deeper analysis\n"
            "3. Address misconceptions visible in the student's work\n"
            "4. Be open-ended rather than yes/no\n"
            "5. Challenge assumptions"
        ),
        "requirements": [
            "Provide 3-5 sequenced questions, foundational ones first",
            "Give a short reason for each question in parentheses",
            "NOT answer any of the questions",
            "End with an encouraging note about reflection",
        ],
        "max_tokens": 500,
        "timeout": 15,
        "temperature": 0.7,
        "guard_field": None,
        "min_length": 0,
        "guard_message": None,
        "include_work": True,
        "include_context": True,
        "work_label": "Student's current work",
        "request_label": "Student's request",
        "default_request": "Please provide Socratic questions to help the student think through this problem.",
        "closing": None,
        "cache_fields": TUTOR_CACHE_FIELDS,
        "options": {},
        "post_processor": format_socratic_questions,
        "timeout_message": (
            "Request timed out. Please try with a more specific question about what "
            "you're struggling with."
        ),
        "error_message": (
            "There was an error generating questions. Please try again with more details "
            "about your current understanding."
        ),
    },
    "error_detection": {
        "label": "Error detection",
        "system_prompt": (
            "You are a tutor who helps students find areas to improve in their own work.\n\n"
            "Your feedback should:\n"
            "1. Name types of mistakes rather than specific corrections\n"
            "2. Encourage self-correction through guiding questions\n"
            "3. Mention strengths as well as weaknesses\n"
            "4. Suggest ways to verify the work, such as testing with sample values"
        ),
        "requirements": [
            "Identify 2-3 areas worth reviewing",
            "Ask guiding questions that lead to self-correction",
            "NOT provide direct corrections or solutions",
            "Include at least one strength of the student's approach",
            "Suggest a verification strategy",
        ],
        "max_tokens": 500,
        "timeout": 15,
        "temperature": 0.7,
        "guard_field": "studentInput",
        "min_length": 5,
        "guard_message": (
            "Please provide your work first so I can help identify areas for improvement. "
            "I'll guide you rather than give direct corrections."
        ),
        "include_work": True,
        "include_context": True,
        "work_label": "Student's work to review",
        "request_label": "Student's request",
        "default_request": "Please review this work and point out areas to double-check.",
        "closing": None,
        "cache_fields": TUTOR_CACHE_FIELDS,
        "options": {},
        "post_processor": None,
        "timeout_message": "Request timed out. Please try submitting a smaller portion of your work for review.",
        "error_message": (
            "There was an error analyzing your work. Please try again with a clearer "
            "explanation of what you'd like feedback on."
        ),
    },
}


def get_mode(name):
    """Return the descriptor for a mode, or None for no_ai and unknown names."""
    return AI_MODES.get(name)
