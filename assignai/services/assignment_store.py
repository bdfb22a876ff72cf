"""
In-memory assignment store.

Holds configured assignments, per-student progress and the AI
interaction log for the life of the process. Nothing is persisted; a
database-backed store only needs the same methods.
"""
import copy
import uuid
import logging
import threading
from datetime import datetime, timezone

from assignai.errors import NotFoundError, ValidationError
from assignai.models import to_bool

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc).isoformat()


class AssignmentStore:
    """Thread-safe maps of assignments, progress and interactions.

    Values handed out are copies, so callers can never mutate stored state
    behind the lock.
    """

    def __init__(self):
        self._assignments = {}
        self._progress = {}        # (assignment_id, student_id) -> progress
        self._interactions = {}    # assignment_id -> [interaction]
        self._lock = threading.Lock()

    # ─────────────────────────────────────────────────────
    # Assignments
    # ─────────────────────────────────────────────────────

    def save(self, assignment):
        """Store an assignment, assigning an id and createdAt when missing. Returns the id.

        Saving over an existing id keeps its createdAt and drops stored
        answers to questions the new version no longer has.
        """
        assignment = copy.deepcopy(assignment)
        assignment_id = str(assignment.get('id') or uuid.uuid4())
        assignment['id'] = assignment_id
        assignment.setdefault('questions', [])
        assignment.setdefault('tables', [])

        with self._lock:
            previous = self._assignments.get(assignment_id)
            if previous is not None:
                assignment['createdAt'] = previous.get('createdAt') or assignment.get('createdAt')
                assignment['updatedAt'] = _now()
                question_ids = {q.get('id') for q in assignment['questions']}
                for key, progress in self._progress.items():
                    if key[0] == assignment_id:
                        for stale in [qid for qid in progress['answers'] if qid not in question_ids]:
                            del progress['answers'][stale]
            assignment.setdefault('createdAt', _now())
            self._assignments[assignment_id] = assignment
        logger.info("Stored assignment %s (%d questions)", assignment_id, len(assignment['questions']))
        return assignment_id

    def get(self, assignment_id):
        with self._lock:
            assignment = self._assignments.get(assignment_id)
            if assignment is None:
                raise NotFoundError("Assignment not found")
            return copy.deepcopy(assignment)

    def exists(self, assignment_id):
        with self._lock:
            return assignment_id in self._assignments

    def list_assignments(self):
        with self._lock:
            return [
                {
                    "id": assignment['id'],
                    "title": assignment.get('title', ''),
                    "questionCount": len(assignment.get('questions', [])),
                    "createdAt": assignment.get('createdAt'),
                }
                for assignment in self._assignments.values()
            ]

    def delete(self, assignment_id):
        """Remove an assignment with its progress records and interactions."""
        with self._lock:
            if self._assignments.pop(assignment_id, None) is None:
                raise NotFoundError("Assignment not found")
            for key in [k for k in self._progress if k[0] == assignment_id]:
                del self._progress[key]
            self._interactions.pop(assignment_id, None)
        logger.info("Deleted assignment %s", assignment_id)

    # ─────────────────────────────────────────────────────
    # Student progress
    # ─────────────────────────────────────────────────────

    def _require_assignment(self, assignment_id):
        assignment = self._assignments.get(assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment not found")
        return assignment

    def _progress_record(self, assignment_id, student_id):
        key = (assignment_id, student_id)
        if key not in self._progress:
            self._progress[key] = {
                "assignmentId": assignment_id,
                "studentId": student_id,
                "answers": {},
                "submitted": False,
                "submittedAt": None,
                "lastUpdated": _now(),
            }
        return self._progress[key]

    def save_progress(self, assignment_id, student_id, question_id, answer, complete=True):
        """Record a student's answer. Creates the progress record on first save."""
        with self._lock:
            assignment = self._require_assignment(assignment_id)
            if question_id not in {q['id'] for q in assignment['questions']}:
                raise ValidationError(f"Unknown question id: {question_id}")

            progress = self._progress_record(assignment_id, student_id)
            timestamp = _now()
            progress['answers'][question_id] = {
                "content": answer,
                "lastUpdated": timestamp,
                "complete": to_bool(complete),
            }
            progress['lastUpdated'] = timestamp
            return copy.deepcopy(progress)

    def get_progress(self, assignment_id, student_id):
        """Stored progress, or an empty-answers default that is not stored."""
        with self._lock:
            progress = self._progress.get((assignment_id, student_id))
            if progress is not None:
                return copy.deepcopy(progress)
        return {
            "assignmentId": assignment_id,
            "studentId": student_id,
            "answers": {},
            "submitted": False,
            "submittedAt": None,
            "lastUpdated": None,
        }

    def submit(self, assignment_id, student_id):
        """Mark the student's progress submitted and return the timestamp."""
        with self._lock:
            self._require_assignment(assignment_id)
            progress = self._progress_record(assignment_id, student_id)
            submitted_at = _now()
            progress['submitted'] = True
            progress['submittedAt'] = submitted_at
            progress['lastUpdated'] = submitted_at
        logger.info("Student %s submitted assignment %s", student_id, assignment_id)
        return submitted_at

    def list_submissions(self, assignment_id):
        with self._lock:
            self._require_assignment(assignment_id)
            return [
                copy.deepcopy(progress)
                for (aid, _sid), progress in self._progress.items()
                if aid == assignment_id and progress['submitted']
            ]

    def unlocked_questions(self, assignment_id, student_id):
        """Ids of questions the student may answer, in question order.

        A question unlocks once every dependency has a complete answer;
        questions without dependencies are always unlocked.
        """
        with self._lock:
            assignment = self._require_assignment(assignment_id)
            progress = self._progress.get((assignment_id, student_id))
            answers = progress['answers'] if progress else {}

            completed = {qid for qid, answer in answers.items() if answer.get('complete')}
            return [
                question['id']
                for question in assignment['questions']
                if all(dep in completed for dep in question.get('dependsOn') or [])
            ]

    def dependency_answers(self, assignment_id, student_id, question_id):
        """The student's saved answers to a question's dependencies.

        Returns {dependencyId: {"questionText", "content"}}; dependencies the
        student has not answered are left out.
        """
        with self._lock:
            assignment = self._assignments.get(assignment_id)
            progress = self._progress.get((assignment_id, student_id))
            if assignment is None or progress is None:
                return {}

            questions = {q['id']: q for q in assignment['questions']}
            question = questions.get(question_id)
            if question is None:
                return {}

            answers = {}
            for dep_id in question.get('dependsOn') or []:
                answer = progress['answers'].get(dep_id)
                if answer is not None and dep_id in questions:
                    answers[dep_id] = {
                        "questionText": questions[dep_id].get('text', ''),
                        "content": answer['content'],
                    }
            return answers

    # ─────────────────────────────────────────────────────
    # AI interaction log
    # ─────────────────────────────────────────────────────

    def record_interaction(self, assignment_id, question_id, student_id, prompt, response,
                           timestamp=None):
        interaction = {
            "assignmentId": assignment_id,
            "questionId": question_id,
            "studentId": student_id,
            "prompt": prompt,
            "response": response,
            "timestamp": timestamp or _now(),
        }
        with self._lock:
            self._interactions.setdefault(assignment_id, []).append(interaction)
        return copy.deepcopy(interaction)

    def list_interactions(self, assignment_id, student_id=None):
        with self._lock:
            interactions = self._interactions.get(assignment_id, [])
            return [
                copy.deepcopy(interaction)
                for interaction in interactions
                if student_id is None or interaction['studentId'] == student_id
            ]
