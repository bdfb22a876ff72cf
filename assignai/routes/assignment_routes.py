"""
Assignment API routes for AssignAI.
Handles PDF upload and parsing, instructor configuration, and student
progress, submission and unlock state.
"""
import os
import time
import uuid
import logging

from flask import Blueprint, current_app, request, jsonify
from werkzeug.utils import secure_filename

from assignai.config import ALLOWED_MIME_TYPES
from assignai.errors import ExtractionError
from assignai.models import build_dependency_map, sanitize_questions
from assignai.services.assignment_parser import build_fallback_assignment
from assignai.services.pdf_extractor import extract_pdf

logger = logging.getLogger(__name__)

assignment_bp = Blueprint('assignments', __name__)

# These will be set by create_app() during initialization
store = None
parser = None
mediation = None


def init_assignment_routes(store_ref, parser_ref, mediation_ref):
    """Initialize assignment routes with the shared store and services."""
    global store, parser, mediation
    store = store_ref
    parser = parser_ref
    mediation = mediation_ref


def too_large_message(max_bytes):
    return f"File size too large. Maximum file size is {max_bytes // (1024 * 1024)}MB."


def _save_upload(filename, data):
    """Keep the original PDF on disk; the path is returned as originalFile."""
    upload_folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_folder, exist_ok=True)
    safe_name = secure_filename(filename or '') or 'assignment.pdf'
    stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}"
    path = os.path.join(upload_folder, stored_name)
    with open(path, 'wb') as f:
        f.write(data)
    return path


@assignment_bp.route('/api/assignments/upload', methods=['POST'])
def upload_assignment():
    """Extract and parse an uploaded PDF into an editable assignment draft."""
    file = request.files.get('assignment') or request.files.get('file')
    if file is None or not file.filename:
        return jsonify({"error": "No file uploaded"}), 400

    if file.mimetype not in ALLOWED_MIME_TYPES:
        return jsonify({"error": "Only PDF files are allowed"}), 400

    file_data = file.read()
    max_bytes = current_app.config['MAX_UPLOAD_BYTES']
    if len(file_data) > max_bytes:
        return jsonify({"error": too_large_message(max_bytes)}), 400

    original_file = _save_upload(file.filename, file_data)
    logger.info("Received upload %s (%d bytes)", file.filename, len(file_data))

    try:
        extracted = extract_pdf(
            file_data,
            max_pages=current_app.config['MAX_PDF_PAGES'],
            timeout=current_app.config['PDF_EXTRACTION_TIMEOUT'],
        )
    except ExtractionError as e:
        logger.error("Could not extract %s: %s", file.filename, e)
        parsed = build_fallback_assignment()
    else:
        logger.info("Extracted %d chars and %d tables from %d of %d pages",
                    len(extracted['text']), len(extracted['tables']),
                    extracted['pagesProcessed'], extracted['pageCount'])
        parsed = parser.parse_assignment(extracted)

    return jsonify({
        "id": str(uuid.uuid4()),
        "title": parsed['title'],
        "globalInstructions": parsed['globalInstructions'],
        "questions": parsed['questions'],
        "tables": parsed['tables'],
        "originalFile": original_file,
    })


@assignment_bp.route('/api/assignments/configure', methods=['POST'])
def configure_assignment():
    """Store an instructor-configured assignment."""
    data = request.get_json(silent=True) or {}
    if 'questions' not in data:
        return jsonify({"error": "Missing questions in assignment"}), 400

    assignment = {
        "id": data.get('id'),
        "title": data.get('title') or 'Untitled Assignment',
        "globalInstructions": data.get('globalInstructions') or '',
        "questions": sanitize_questions(data['questions']),
        "tables": data.get('tables') if isinstance(data.get('tables'), list) else [],
    }
    if data.get('originalFile'):
        assignment['originalFile'] = data['originalFile']

    assignment_id = store.save(assignment)
    # Instructor prompts may have changed, so cached answers are stale
    mediation.clear_cache()
    return jsonify({"assignmentId": assignment_id})


@assignment_bp.route('/api/assignments', methods=['GET'])
def list_assignments():
    return jsonify({"assignments": store.list_assignments()})


@assignment_bp.route('/api/assignments/<assignment_id>', methods=['GET'])
def get_assignment(assignment_id):
    """Get a stored assignment with its dependency map."""
    assignment = store.get(assignment_id)
    assignment['dependencyMap'] = build_dependency_map(assignment['questions'])
    return jsonify(assignment)


@assignment_bp.route('/api/assignments/<assignment_id>', methods=['DELETE'])
def delete_assignment(assignment_id):
    store.delete(assignment_id)
    return jsonify({"success": True})


@assignment_bp.route('/api/assignments/<assignment_id>/progress/<student_id>', methods=['GET'])
def get_progress(assignment_id, student_id):
    return jsonify(store.get_progress(assignment_id, student_id))


@assignment_bp.route('/api/assignments/<assignment_id>/progress/<student_id>', methods=['POST'])
def save_progress(assignment_id, student_id):
    """Save one answer and report which questions are now unlocked."""
    data = request.get_json(silent=True) or {}
    question_id = data.get('questionId')
    if not question_id:
        return jsonify({"error": "Missing questionId"}), 400

    store.save_progress(
        assignment_id, student_id, question_id,
        data.get('answer', ''),
        complete=data.get('complete', True),
    )
    return jsonify({
        "success": True,
        "message": "Progress saved",
        "unlockedQuestions": store.unlocked_questions(assignment_id, student_id),
    })


@assignment_bp.route('/api/assignments/<assignment_id>/submit', methods=['POST'])
def submit_assignment(assignment_id):
    data = request.get_json(silent=True) or {}
    student_id = data.get('studentId')
    if not student_id:
        return jsonify({"error": "Missing studentId"}), 400

    submitted_at = store.submit(assignment_id, student_id)
    return jsonify({
        "success": True,
        "message": "Assignment submitted",
        "submittedAt": submitted_at,
    })


@assignment_bp.route('/api/assignments/<assignment_id>/submissions', methods=['GET'])
def get_submissions(assignment_id):
    """Get all submitted progress records for an assignment (instructor view)."""
    submissions = store.list_submissions(assignment_id)
    submissions.sort(key=lambda s: s.get('submittedAt') or '', reverse=True)
    return jsonify({"submissions": submissions})
