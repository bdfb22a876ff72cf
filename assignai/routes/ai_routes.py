"""
AI API routes for AssignAI.
Student-facing AI help, mediated by each question's configured mode,
and the log of AI interactions.
"""
import logging

from flask import Blueprint, request, jsonify

from assignai.errors import ValidationError

logger = logging.getLogger(__name__)

ai_bp = Blueprint('ai', __name__)

# These will be set by create_app() during initialization
store = None
mediation = None


def init_ai_routes(store_ref, mediation_ref):
    """Initialize AI routes with the shared store and mediation service."""
    global store, mediation
    store = store_ref
    mediation = mediation_ref


TEXT_FIELDS = ('aiOption', 'questionText', 'userPrompt', 'customPrompt',
               'studentInput', 'globalInstructions')


def _text_field(data, field):
    value = data.get(field)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value


def _answer_entry(question_text, content):
    if not isinstance(question_text, str) or not isinstance(content, str):
        raise ValidationError("Dependency questionText and answer must be strings")
    return {"questionText": question_text, "content": content}


def _dependency_answers(dependencies):
    """Accept [{questionId, questionText, studentAnswer}] or an already keyed dict."""
    answers = {}
    if isinstance(dependencies, dict):
        for question_id, answer in dependencies.items():
            if not isinstance(answer, dict):
                raise ValidationError("Each dependency must be an object")
            answers[question_id] = _answer_entry(answer.get('questionText', ''),
                                                 answer.get('content', ''))
        return answers

    if not isinstance(dependencies, list):
        raise ValidationError("dependencies must be a list or an object")
    for dep in dependencies:
        if not isinstance(dep, dict):
            raise ValidationError("Each dependency must be an object")
        if dep.get('questionId'):
            answers[dep['questionId']] = _answer_entry(
                dep.get('questionText', ''),
                dep.get('studentAnswer', dep.get('content', '')),
            )
    return answers


@ai_bp.route('/api/ai/generate', methods=['POST'])
def generate_ai_response():
    """Generate AI help for one question under its configured mode."""
    data = request.get_json(silent=True) or {}

    missing = [field for field in ('aiOption', 'questionText', 'questionId') if not data.get(field)]
    if missing:
        return jsonify({"error": f"Missing required fields: {', '.join(missing)}"}), 400

    texts = {field: _text_field(data, field) for field in TEXT_FIELDS}
    assignment_id = data.get('assignmentId')
    student_id = data.get('studentId')
    question_id = data['questionId']

    if data.get('dependencies') is not None:
        dependency_answers = _dependency_answers(data['dependencies'])
    elif assignment_id and student_id:
        dependency_answers = store.dependency_answers(assignment_id, student_id, question_id)
    else:
        dependency_answers = {}

    global_instructions = texts['globalInstructions']
    if global_instructions is None and assignment_id and store.exists(assignment_id):
        global_instructions = store.get(assignment_id).get('globalInstructions', '')

    try:
        ai_response = mediation.generate(
            texts['aiOption'],
            texts['questionText'],
            user_prompt=texts['userPrompt'] or '',
            custom_prompt=texts['customPrompt'] or '',
            student_input=texts['studentInput'] or '',
            global_instructions=global_instructions or '',
            dependency_answers=dependency_answers,
        )
    except Exception as e:
        logger.exception("Error generating AI response for question %s", question_id)
        return jsonify({"error": "Failed to generate AI response", "details": str(e)}), 500

    return jsonify({"aiResponse": ai_response})


@ai_bp.route('/api/ai/interaction', methods=['POST'])
def record_interaction():
    """Log a student's AI interaction for instructor review."""
    data = request.get_json(silent=True) or {}
    if not data.get('questionId') or not data.get('prompt'):
        return jsonify({"error": "Missing questionId or prompt"}), 400

    store.record_interaction(
        data.get('assignmentId'),
        data['questionId'],
        data.get('studentId'),
        data['prompt'],
        data.get('response', ''),
        timestamp=data.get('timestamp'),
    )
    return jsonify({"success": True})


@ai_bp.route('/api/assignments/<assignment_id>/interactions', methods=['GET'])
def list_interactions(assignment_id):
    student_id = request.args.get('studentId')
    return jsonify({"interactions": store.list_interactions(assignment_id, student_id)})
