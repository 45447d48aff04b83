import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from config import DEADLINE_WINDOW_DAYS, MAX_UPLOAD_FILES, MAX_UPLOAD_SIZE
from crud.assignment import AssignmentCRUD
from crud.user import UserCRUD
from dependencies import (
    get_assignment_crud, get_gate, get_media_service, get_requester_id, get_user_crud
)
from errors import BadRequest, Forbidden, NotFound
from models.assignment import Assignment, DayEnum, Submission
from schemas.assignment import (
    AssignmentCreate, AssignmentUpdate, AssignmentResponse, MessageResponse,
    SubmitRequest, GradeRequest, SubmissionResponse, SubmissionView,
    SubmitterOut, SubmissionDetail, StatsSummary
)
from services.authorization import AuthorizationGate
from services.media import MediaService, UploadItem
from services.statistics import StatisticsService
from services.submissions import (
    ASSIGNMENT_NOT_FOUND, SUBMISSION_NOT_FOUND, NO_ACCESS,
    get_submittable_assignment, submit_replacing_files, submit_appending_files,
    grade_submission
)
from utils.dates import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assignments", tags=["Assignments"])

REQUESTER_REQUIRED = "User ID atau Admin ID diperlukan sebagai query parameter"
ADMIN_ID_REQUIRED = "Admin ID diperlukan sebagai query parameter"
INVALID_ASSIGNEES = "Beberapa user ID tidak valid"


async def _get_assignment_or_404(assignments: AssignmentCRUD, assignment_id: str) -> Assignment:
    assignment = await assignments.get_assignment_by_id(assignment_id)
    if not assignment:
        raise NotFound(ASSIGNMENT_NOT_FOUND)
    return assignment


async def _with_submitters(users: UserCRUD, submissions: List[Submission]) -> List[SubmissionView]:
    """Attach username/email of each submitting user."""
    found = await users.get_users_by_ids([submission.user for submission in submissions])
    by_id = {user.id: user for user in found}

    views = []
    for submission in submissions:
        user = by_id.get(submission.user)
        submitter = SubmitterOut(_id=user.id, username=user.username, email=user.email) if user else None
        views.append(SubmissionView(**submission.model_dump(exclude={"user"}), user=submitter))
    return views


# -------------------- ASSIGNMENT CRUD -------------------- #
@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    assignment_data: AssignmentCreate,
    gate: AuthorizationGate = Depends(get_gate),
    users: UserCRUD = Depends(get_user_crud),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Create a new assignment (Admin only)"""
    admin = await gate.require_admin(
        assignment_data.user_id,
        forbidden_message="Hanya admin yang dapat membuat tugas"
    )

    # Reject the whole request if any assignee is unknown
    if assignment_data.assigned_to and not await users.all_exist(assignment_data.assigned_to):
        raise BadRequest(INVALID_ASSIGNEES)

    fields = assignment_data.model_dump(by_alias=True, exclude={"user_id"})
    assignment = await assignments.create_assignment(fields, creator_id=admin.id)
    logger.info("Assignment %s created by %s", assignment.id, admin.username)
    return AssignmentResponse(message="Tugas berhasil dibuat", assignment=assignment)


@router.get("", response_model=List[Assignment])
async def get_assignments(
    day: Optional[DayEnum] = None,
    requester_id: Optional[str] = Depends(get_requester_id),
    gate: AuthorizationGate = Depends(get_gate),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Get assignments - all for admins, only assigned ones for users"""
    user = await gate.resolve(requester_id, missing_message=REQUESTER_REQUIRED)
    day_value = day.value if day else None

    if user.is_admin:
        return await assignments.get_assignments(day=day_value)
    return await assignments.get_assignments(assigned_to=user.id, day=day_value)


@router.get("/deadline", response_model=List[Assignment])
async def get_deadline_assignments(
    userId: Optional[str] = None,
    gate: AuthorizationGate = Depends(get_gate),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Assignments due within the next week, soonest first (regular users only)"""
    user = await gate.resolve(userId, missing_message="User ID diperlukan sebagai query parameter")
    if user.is_admin:
        raise Forbidden("Endpoint ini hanya untuk user biasa")

    now = utcnow()
    return await assignments.get_assignments_due_between(
        user.id, now, now + timedelta(days=DEADLINE_WINDOW_DAYS)
    )


@router.get("/stats", response_model=StatsSummary)
async def get_assignment_stats(
    adminId: Optional[str] = None,
    gate: AuthorizationGate = Depends(get_gate),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Submitted / graded / not submitted counts per assignment (Admin only)"""
    await gate.require_admin(adminId, missing_message=ADMIN_ID_REQUIRED)
    return StatisticsService().summarize(await assignments.get_assignments())


@router.get("/{assignment_id}", response_model=Assignment)
async def get_assignment(
    assignment_id: str,
    requester_id: Optional[str] = Depends(get_requester_id),
    gate: AuthorizationGate = Depends(get_gate),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Get a specific assignment"""
    user = await gate.resolve(requester_id, missing_message=REQUESTER_REQUIRED)
    assignment = await _get_assignment_or_404(assignments, assignment_id)

    if not user.is_admin and not assignment.is_assigned(user.id):
        raise Forbidden(NO_ACCESS)

    return assignment


@router.put("/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    assignment_id: str,
    assignment_data: AssignmentUpdate,
    gate: AuthorizationGate = Depends(get_gate),
    users: UserCRUD = Depends(get_user_crud),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Update an assignment (Admin only); empty values leave the field unchanged"""
    await gate.require_admin(
        assignment_data.user_id,
        forbidden_message="Hanya admin yang dapat mengupdate tugas"
    )

    if assignment_data.assigned_to and not await users.all_exist(assignment_data.assigned_to):
        raise BadRequest(INVALID_ASSIGNEES)

    await _get_assignment_or_404(assignments, assignment_id)

    updated = await assignments.update_assignment(assignment_id, assignment_data.supplied_fields())
    if not updated:
        raise NotFound(ASSIGNMENT_NOT_FOUND)
    return AssignmentResponse(message="Tugas berhasil diupdate", assignment=updated)


@router.delete("/{assignment_id}", response_model=MessageResponse)
async def delete_assignment(
    assignment_id: str,
    adminId: Optional[str] = None,
    gate: AuthorizationGate = Depends(get_gate),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Delete an assignment together with its submissions (Admin only)"""
    admin = await gate.require_admin(
        adminId,
        forbidden_message="Hanya admin yang dapat menghapus tugas",
        missing_message=ADMIN_ID_REQUIRED
    )

    if not await assignments.delete_assignment(assignment_id):
        raise NotFound(ASSIGNMENT_NOT_FOUND)

    logger.info("Assignment %s deleted by %s", assignment_id, admin.username)
    return MessageResponse(message="Tugas berhasil dihapus")


# -------------------- SUBMISSIONS -------------------- #
@router.post("/{assignment_id}/submit", response_model=SubmissionResponse)
async def submit_assignment(
    assignment_id: str,
    submission_data: SubmitRequest,
    gate: AuthorizationGate = Depends(get_gate),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Submit with JSON; file references replace the previous ones"""
    user = await gate.resolve(submission_data.user_id)
    assignment = await get_submittable_assignment(assignments, assignment_id, user)

    submission = await submit_replacing_files(
        assignments, assignment, user.id,
        content=submission_data.content,
        attachments=submission_data.attachments,
        images=submission_data.images
    )
    return SubmissionResponse(message="Tugas berhasil dikumpulkan", submission=submission)


@router.post("/{assignment_id}/submit-form", response_model=SubmissionResponse)
async def submit_assignment_with_files(
    assignment_id: str,
    userId: Optional[str] = Form(None),
    content: Optional[str] = Form(""),
    files: Optional[List[UploadFile]] = File(None),
    gate: AuthorizationGate = Depends(get_gate),
    assignments: AssignmentCRUD = Depends(get_assignment_crud),
    media: MediaService = Depends(get_media_service)
):
    """Submit with multipart form data; uploaded files are added to the previous ones"""
    user = await gate.resolve(userId)
    assignment = await get_submittable_assignment(assignments, assignment_id, user)

    uploads = [upload for upload in (files or []) if upload.filename]
    if len(uploads) > MAX_UPLOAD_FILES:
        raise BadRequest(f"Maksimal {MAX_UPLOAD_FILES} file per pengumpulan")

    items = []
    for upload in uploads:
        data = await upload.read()
        if len(data) > MAX_UPLOAD_SIZE:
            raise BadRequest(f"Ukuran file {upload.filename} melebihi batas")
        items.append(UploadItem(
            filename=upload.filename,
            content=data,
            content_type=upload.content_type or "application/octet-stream"
        ))

    uploaded = await media.upload_submission_files(items)

    submission = await submit_appending_files(
        assignments, assignment, user.id,
        content=content,
        attachments=uploaded.attachments,
        images=uploaded.images
    )
    return SubmissionResponse(
        message="Tugas berhasil dikumpulkan",
        submission=submission,
        failed_uploads=uploaded.failed
    )


@router.put("/{assignment_id}/submissions/{submission_id}/grade", response_model=SubmissionResponse)
async def grade_assignment_submission(
    assignment_id: str,
    submission_id: str,
    grade_data: GradeRequest,
    gate: AuthorizationGate = Depends(get_gate),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """Grade a submission (Admin only)"""
    await gate.require_admin(
        grade_data.user_id,
        forbidden_message="Hanya admin yang dapat memberikan nilai"
    )

    submission = await grade_submission(
        assignments, assignment_id, submission_id,
        grade=grade_data.grade,
        feedback=grade_data.feedback
    )
    return SubmissionResponse(message="Nilai berhasil diberikan", submission=submission)


@router.get("/{assignment_id}/submissions", response_model=List[SubmissionView])
async def get_assignment_submissions(
    assignment_id: str,
    adminId: Optional[str] = None,
    gate: AuthorizationGate = Depends(get_gate),
    users: UserCRUD = Depends(get_user_crud),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """All submissions of an assignment with usernames resolved (Admin only)"""
    await gate.require_admin(
        adminId,
        forbidden_message="Hanya admin yang dapat melihat semua submission",
        missing_message=ADMIN_ID_REQUIRED
    )

    assignment = await _get_assignment_or_404(assignments, assignment_id)
    return await _with_submitters(users, assignment.submissions)


@router.get("/{assignment_id}/submissions/{submission_id}", response_model=SubmissionDetail)
async def get_submission_details(
    assignment_id: str,
    submission_id: str,
    adminId: Optional[str] = None,
    gate: AuthorizationGate = Depends(get_gate),
    users: UserCRUD = Depends(get_user_crud),
    assignments: AssignmentCRUD = Depends(get_assignment_crud)
):
    """One submission with its files and the assignment it belongs to (Admin only)"""
    await gate.require_admin(
        adminId,
        forbidden_message="Hanya admin yang dapat melihat detail submission",
        missing_message=ADMIN_ID_REQUIRED
    )

    assignment = await _get_assignment_or_404(assignments, assignment_id)
    submission = assignment.get_submission(submission_id)
    if not submission:
        raise NotFound(SUBMISSION_NOT_FOUND)

    [view] = await _with_submitters(users, [submission])
    return SubmissionDetail(
        submission=view,
        assignment_title=assignment.title,
        assignment_description=assignment.description,
        deadline=assignment.deadline
    )
