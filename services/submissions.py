# services/submissions.py
"""Submission lifecycle for assignments.

A user has at most one submission per assignment. Submitting again before
the deadline overwrites that submission in place and puts it back in the
``submitted`` state; grading moves it to ``graded``.

The two submission entry points merge files differently:

* the JSON path replaces content and both file lists wholesale;
* the multipart path appends newly uploaded files to the existing lists and
  keeps the previous content when no new content is sent.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from crud.assignment import AssignmentCRUD
from errors import BadRequest, DeadlineExceeded, Forbidden, NotFound
from models.assignment import Assignment, FileReference, Submission, SubmissionStatus
from models.user import User
from utils.dates import utcnow

logger = logging.getLogger(__name__)

ASSIGNMENT_NOT_FOUND = "Tugas tidak ditemukan"
SUBMISSION_NOT_FOUND = "Submission tidak ditemukan"
NO_ACCESS = "Anda tidak memiliki akses ke tugas ini"

MIN_GRADE = 0
MAX_GRADE = 100


def _dump_files(files: List[FileReference]) -> List[dict]:
    return [file.model_dump(by_alias=True) for file in files]


def check_deadline(assignment: Assignment, now: Optional[datetime] = None):
    if (now or utcnow()) > assignment.deadline:
        raise DeadlineExceeded()


async def get_submittable_assignment(assignments: AssignmentCRUD, assignment_id: str,
                                     user: User) -> Assignment:
    assignment = await assignments.get_assignment_by_id(assignment_id)
    if assignment is None:
        raise NotFound(ASSIGNMENT_NOT_FOUND)
    if not assignment.is_assigned(user.id):
        raise Forbidden(NO_ACCESS)
    check_deadline(assignment)
    return assignment


async def _upsert(assignments: AssignmentCRUD, assignment: Assignment, user_id: str,
                  new_submission: Callable[[datetime], Submission],
                  resubmission: Callable[[Submission, datetime], dict]) -> Submission:
    now = utcnow()
    existing = assignment.submission_for(user_id)

    if existing is None:
        added = await assignments.add_submission(assignment.id, new_submission(now))
        if not added:
            # Another request for the same user got there first
            assignment = await assignments.get_assignment_by_id(assignment.id)
            if assignment is None:
                raise NotFound(ASSIGNMENT_NOT_FOUND)
            existing = assignment.submission_for(user_id)

    if existing is not None:
        fields = resubmission(existing, now)
        fields.update({
            "submittedAt": now,
            "status": SubmissionStatus.submitted.value,
            # A new version of the work invalidates the previous grade
            "grade": None,
            "feedback": None,
        })
        await assignments.update_submission(assignment.id, existing.id, fields)

    refreshed = await assignments.get_assignment_by_id(assignment.id)
    if refreshed is None:
        raise NotFound(ASSIGNMENT_NOT_FOUND)
    return refreshed.submission_for(user_id)


async def submit_replacing_files(assignments: AssignmentCRUD, assignment: Assignment,
                                 user_id: str, content: Optional[str],
                                 attachments: List[FileReference],
                                 images: List[FileReference]) -> Submission:
    def new_submission(now):
        return Submission(user=user_id, content=content or "", attachments=attachments,
                          images=images, submitted_at=now)

    def resubmission(existing, now):
        return {
            "content": content or "",
            "attachments": _dump_files(attachments),
            "images": _dump_files(images),
        }

    return await _upsert(assignments, assignment, user_id, new_submission, resubmission)


async def submit_appending_files(assignments: AssignmentCRUD, assignment: Assignment,
                                 user_id: str, content: Optional[str],
                                 attachments: List[FileReference],
                                 images: List[FileReference]) -> Submission:
    def new_submission(now):
        return Submission(user=user_id, content=content or "", attachments=attachments,
                          images=images, submitted_at=now)

    def resubmission(existing, now):
        return {
            "content": content or existing.content,
            "attachments": _dump_files(existing.attachments + attachments),
            "images": _dump_files(existing.images + images),
        }

    return await _upsert(assignments, assignment, user_id, new_submission, resubmission)


async def grade_submission(assignments: AssignmentCRUD, assignment_id: str,
                           submission_id: str, grade: float,
                           feedback: Optional[str]) -> Submission:
    assignment = await assignments.get_assignment_by_id(assignment_id)
    if assignment is None:
        raise NotFound(ASSIGNMENT_NOT_FOUND)

    submission = assignment.get_submission(submission_id)
    if submission is None:
        raise NotFound(SUBMISSION_NOT_FOUND)

    if not MIN_GRADE <= grade <= MAX_GRADE:
        raise BadRequest(f"Nilai harus antara {MIN_GRADE} dan {MAX_GRADE}")

    await assignments.update_submission(assignment_id, submission_id, {
        "grade": grade,
        "feedback": feedback,
        "status": SubmissionStatus.graded.value,
    })
    logger.info("Graded submission %s of assignment %s: %s", submission_id, assignment_id, grade)

    refreshed = await assignments.get_assignment_by_id(assignment_id)
    if refreshed is None:
        raise NotFound(ASSIGNMENT_NOT_FOUND)
    return refreshed.get_submission(submission_id)
