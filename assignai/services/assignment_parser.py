"""
Assignment Parser
=================

Turns extracted PDF text (plus detected tables) into a structured
assignment by asking the language model for strict JSON, then links
question dependencies and table references.

Whatever goes wrong (timeout, model error, unusable JSON), the caller
still gets an uploadable two-question fallback assignment.
"""
import copy
import json
import uuid
import logging

from pydantic import ValidationError as SchemaValidationError

from assignai.config import (
    PARSER_TEXT_LIMIT, PARSER_CACHE_PREFIX, PARSER_TIMEOUT,
    PARSER_MAX_TOKENS, PARSE_CACHE_TTL, PARSER_MODEL,
)
from assignai.errors import MediationError, ParseError
from assignai.models import NO_AI, ParsedAssignment, cell_text
from assignai.services.cache import ResponseCache, make_cache_key
from assignai.services.llm_client import LLMClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert at analyzing educational assignments. You can identify "
    "interdependent problems and extract structured information including tables. "
    "Respond with valid JSON only."
)

EXTRACTION_PROMPT = """Extract the following from the provided assignment text:
1. The assignment title
2. Global instructions that apply to all questions
3. Each individual question, numbered in order
4. Tables with their data in a structured format

Format your response as a JSON object with:
- "title": The assignment title
- "globalInstructions": Overall instructions for the assignment
- "tables": Array of tables, each with { "id": "string", "data": [[row1col1, row1col2], ...] }
- "questions": Array of questions, each with:
  - "number": The question number
  - "text": The question text
  - "dependsOn": Array of earlier question numbers this question depends on (empty if none)
  - "requiredForNext": Boolean indicating if this question is required for the next
  - "tableData": Array of table ids from "tables" (or rows of cells) directly related to this question

Extract tables that appear in the assignment and include the data with the relevant questions.
"""


def build_fallback_assignment():
    """The fixed two-question stub used when parsing fails."""
    return {
        "title": "New Assignment",
        "globalInstructions": "Please complete all questions in this assignment.",
        "tables": [],
        "questions": [
            {
                "id": str(uuid.uuid4()),
                "number": number,
                "text": f"Question {number} - Please edit this question text.",
                "aiOption": NO_AI,
                "customPrompt": "",
                "dependsOn": [],
                "requiredForNext": False,
                "tableData": [],
            }
            for number in (1, 2)
        ],
    }


def extract_json_object(reply_text):
    """Return the first JSON object embedded in a model reply.

    The model may wrap its JSON in prose or markdown fences, so every "{"
    is tried as a starting point until one decodes to an object.
    """
    decoder = json.JSONDecoder()
    text = reply_text or ''
    start = text.find('{')
    while start != -1:
        try:
            data, _end = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            return data
        start = text.find('{', start + 1)
    raise ParseError("No JSON object found in model reply")


def build_prompt(text, tables):
    """Compose the user prompt: instructions, detected tables, then truncated text."""
    prompt = EXTRACTION_PROMPT
    if tables:
        prompt += f"\nThe assignment contains {len(tables)} tables:\n"
        for index, table in enumerate(tables, 1):
            content = table.get('content', table) if isinstance(table, dict) else {}
            prompt += f"Table {index}:\n"
            for row in content.get('rows', []):
                prompt += ' | '.join(str(cell) for cell in row) + '\n'
            prompt += '\n'
    prompt += f"\nHere is the assignment text:\n{text[:PARSER_TEXT_LIMIT]}"
    return prompt


def resolve_table_data(entries, table_map):
    """Inline table references; literal rows are kept. Unknown ids add nothing."""
    rows = []
    for entry in entries:
        if isinstance(entry, list):
            rows.append([cell_text(cell) for cell in entry])
        elif isinstance(entry, dict):
            rows.extend(copy.deepcopy(table_map.get(cell_text(entry.get('id')), [])))
        elif isinstance(entry, (str, int)) and not isinstance(entry, bool):
            rows.extend(copy.deepcopy(table_map.get(str(entry), [])))
    return rows


def link_questions(parsed):
    """Assign question ids and rewrite number-based dependencies to ids.

    Dependencies on unknown numbers, on the question itself, or on later
    questions are dropped. Every question starts out as no_ai.
    """
    table_map = {table.id: table.data for table in parsed.tables}

    id_by_number = {}
    numbered = []
    for question in parsed.questions:
        question_id = str(uuid.uuid4())
        id_by_number.setdefault(question.number, question_id)
        numbered.append((question, question_id))

    questions = []
    for question, question_id in numbered:
        depends_on = []
        for number in question.dependsOn:
            dep_id = id_by_number.get(number)
            if dep_id is None or number >= question.number:
                logger.debug("Dropping dependency on Q%s from Q%s", number, question.number)
                continue
            if dep_id not in depends_on:
                depends_on.append(dep_id)

        questions.append({
            "id": question_id,
            "number": question.number,
            "text": question.text,
            "aiOption": NO_AI,
            "customPrompt": "",
            "dependsOn": depends_on,
            "requiredForNext": question.requiredForNext,
            "tableData": resolve_table_data(question.tableData, table_map),
        })
    return questions


def _split_content(content):
    """Accept legacy plain text or the extractor's {"text", "tables"} dict."""
    if isinstance(content, str):
        return content, []
    if isinstance(content, dict):
        return content.get('text') or '', content.get('tables') or []
    return '', []


class AssignmentParser:
    """Parses assignment text with the language model, with caching and fallback.

    Usage:
        parser = AssignmentParser()
        assignment = parser.parse_assignment({"text": text, "tables": tables})
    """

    def __init__(self, llm=None, cache=None):
        self.llm = llm or LLMClient(model=PARSER_MODEL)
        self.cache = cache if cache is not None else ResponseCache(ttl=PARSE_CACHE_TTL)

    def parse_assignment(self, content):
        """Return {title, globalInstructions, questions, tables}; never raises for model failures."""
        text, tables = _split_content(content)

        cache_key = make_cache_key("assignment", text[:PARSER_CACHE_PREFIX])
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("Using cached assignment parsing result")
            return copy.deepcopy(cached)

        try:
            result = self._parse_with_model(text, tables)
        except (MediationError, ParseError) as e:
            logger.error("Assignment parsing failed, using fallback structure: %s", e)
            return build_fallback_assignment()

        self.cache.set(cache_key, copy.deepcopy(result))
        return result

    def _parse_with_model(self, text, tables):
        if not text.strip():
            raise ParseError("No text was extracted from the document")

        logger.info("Parsing assignment with the language model (%d chars, %d tables)",
                    len(text), len(tables))
        reply = self.llm.complete(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(text, tables)},
            ],
            max_tokens=PARSER_MAX_TOKENS,
            timeout=PARSER_TIMEOUT,
            temperature=0.3,
        )

        data = extract_json_object(reply)
        try:
            parsed = ParsedAssignment.model_validate(data)
        except SchemaValidationError as e:
            raise ParseError(f"Model reply does not match the assignment schema: {e}") from e

        questions = link_questions(parsed)
        if not questions:
            raise ParseError("Model reply contained no questions")

        return {
            "title": parsed.title,
            "globalInstructions": parsed.globalInstructions,
            "questions": questions,
            "tables": [{"id": table.id, "data": table.data} for table in parsed.tables],
        }
