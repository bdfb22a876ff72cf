"""
Assignment data shapes for AssignAI.

The model's assignment reply is untrusted input, so it is validated
through the pydantic models below. Malformed pieces degrade to defaults
(missing tables -> [], junk dependsOn entries -> dropped) instead of
failing the whole parse.

Configured assignments travel as plain camelCase dicts, the same shape
the HTTP API returns.
"""
import re
import uuid
import logging
from typing import Any, List, Optional

from pydantic import BaseModel, field_validator

from .errors import ValidationError

logger = logging.getLogger(__name__)

NO_AI = 'no_ai'

AI_OPTIONS = (
    'no_ai',
    'compare',
    'hints',
    'guidance',
    'examples',
    'step_framework',
    'socratic',
    'error_detection',
)


def to_question_number(value) -> Optional[int]:
    """Coerce 2, 2.0, "2" or "Q2" to 2. Returns None when no positive number is found."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value > 0 else None
    match = re.search(r'\d+', str(value))
    if not match:
        return None
    number = int(match.group())
    return number if number > 0 else None


def cell_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', 'yes', '1')
    return bool(value)


# =============================================================================
# MODEL REPLY SCHEMA
# =============================================================================

class ParsedTable(BaseModel):
    id: str
    data: List[List[str]] = []

    @field_validator('data', mode='before')
    @classmethod
    def _coerce_rows(cls, value):
        if not isinstance(value, list):
            return []
        return [[cell_text(cell) for cell in row] for row in value if isinstance(row, list)]


class ParsedQuestion(BaseModel):
    number: int
    text: str = ""
    dependsOn: List[int] = []
    requiredForNext: bool = False
    tableData: List[Any] = []

    @field_validator('text', mode='before')
    @classmethod
    def _coerce_text(cls, value):
        return cell_text(value)

    @field_validator('dependsOn', mode='before')
    @classmethod
    def _coerce_depends_on(cls, value):
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        numbers = [to_question_number(item) for item in value]
        return [n for n in numbers if n is not None]

    @field_validator('requiredForNext', mode='before')
    @classmethod
    def _coerce_required(cls, value):
        return to_bool(value)

    @field_validator('tableData', mode='before')
    @classmethod
    def _coerce_table_data(cls, value):
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return [str(value)]
        return value if isinstance(value, list) else []


class ParsedAssignment(BaseModel):
    title: str = "Untitled Assignment"
    globalInstructions: str = ""
    questions: List[ParsedQuestion] = []
    tables: List[ParsedTable] = []

    @field_validator('title', mode='before')
    @classmethod
    def _coerce_title(cls, value):
        return cell_text(value) or "Untitled Assignment"

    @field_validator('globalInstructions', mode='before')
    @classmethod
    def _coerce_instructions(cls, value):
        return cell_text(value)

    @field_validator('questions', mode='before')
    @classmethod
    def _coerce_questions(cls, value):
        if not isinstance(value, list):
            return []
        questions = []
        for position, item in enumerate(value, 1):
            if isinstance(item, str):
                item = {"text": item}
            if not isinstance(item, dict):
                continue
            item = dict(item)
            number = to_question_number(item.get('number'))
            item['number'] = number if number is not None else position
            questions.append(item)
        return questions

    @field_validator('tables', mode='before')
    @classmethod
    def _coerce_tables(cls, value):
        if not isinstance(value, list):
            return []
        tables = []
        for position, item in enumerate(value, 1):
            if not isinstance(item, dict):
                continue
            item = dict(item)
            item['id'] = cell_text(item.get('id')) or f"table-{position}"
            tables.append(item)
        return tables


# =============================================================================
# CONFIGURED ASSIGNMENTS
# =============================================================================

def sanitize_questions(questions) -> list:
    """Normalise instructor-configured questions.

    Fills in missing ids and numbers, rejects unknown AI options, and drops
    dependency links that are unknown, self- or forward-references so the
    dependency graph only ever points at strictly earlier questions.
    """
    if not isinstance(questions, list):
        raise ValidationError("questions must be a list")

    cleaned = []
    seen_ids = set()
    for position, raw in enumerate(questions, 1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Question {position} must be an object")
        question = dict(raw)
        question['id'] = str(question.get('id') or uuid.uuid4())
        if question['id'] in seen_ids:
            raise ValidationError(f"Duplicate question id: {question['id']}")
        seen_ids.add(question['id'])

        number = to_question_number(question.get('number'))
        question['number'] = number if number is not None else position

        ai_option = question.get('aiOption') or NO_AI
        if ai_option not in AI_OPTIONS:
            raise ValidationError(f"Unknown aiOption '{ai_option}' for question {question['number']}")
        question['aiOption'] = ai_option

        question['text'] = cell_text(question.get('text'))
        question['customPrompt'] = question.get('customPrompt') or ''
        question['requiredForNext'] = to_bool(question.get('requiredForNext', False))
        if not isinstance(question.get('tableData'), list):
            question['tableData'] = []
        cleaned.append(question)

    numbers = {q['id']: q['number'] for q in cleaned}
    for question in cleaned:
        depends_on = question.get('dependsOn') or []
        if not isinstance(depends_on, list):
            depends_on = [depends_on]
        kept = []
        for dep in depends_on:
            dep_id = str(dep)
            if dep_id in numbers and numbers[dep_id] < question['number']:
                if dep_id not in kept:
                    kept.append(dep_id)
            else:
                logger.warning("Dropping dependency %s of question %s (unknown or not earlier)",
                               dep_id, question['number'])
        question['dependsOn'] = kept

    return cleaned


def build_dependency_map(questions) -> dict:
    """Map each question id to its dependsOn list and requiredForNext flag."""
    dependency_map = {}
    for question in questions or []:
        dependency_map[question['id']] = {
            "dependsOn": list(question.get('dependsOn') or []),
            "requiredForNext": bool(question.get('requiredForNext')),
        }
    return dependency_map
