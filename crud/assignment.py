from datetime import datetime
from typing import List, Optional
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from crud.user import to_object_id
from models.assignment import Assignment, Submission
from utils.dates import utcnow


def _unique(ids: List[str]) -> List[str]:
    seen = []
    for value in ids:
        if value not in seen:
            seen.append(value)
    return seen


# Helper function to convert MongoDB document to model
def convert_doc_to_model(doc) -> Optional[Assignment]:
    if not doc:
        return None
    doc = dict(doc)
    doc['_id'] = str(doc['_id'])
    doc['user'] = str(doc['user'])
    doc['assignedTo'] = [str(user_id) for user_id in doc.get('assignedTo', [])]
    submissions = []
    for submission in doc.get('submissions', []):
        submission = dict(submission)
        submission['_id'] = str(submission['_id'])
        submission['user'] = str(submission['user'])
        submissions.append(submission)
    doc['submissions'] = submissions
    return Assignment.model_validate(doc)


class AssignmentCRUD:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def create_assignment(self, fields: dict, creator_id: str) -> Assignment:
        """Insert a new assignment. `fields` uses the stored camelCase keys."""
        assignment_data = dict(fields)
        assignment_data['assignedTo'] = [
            ObjectId(user_id) for user_id in _unique(assignment_data.get('assignedTo', []))
        ]
        assignment_data['user'] = ObjectId(creator_id)
        assignment_data['isCompleted'] = False
        assignment_data['createdAt'] = utcnow()
        assignment_data['attachments'] = []
        assignment_data['images'] = []
        assignment_data['submissions'] = []

        result = await self.db.assignments.insert_one(assignment_data)
        return await self.get_assignment_by_id(str(result.inserted_id))

    async def get_assignment_by_id(self, assignment_id: str) -> Optional[Assignment]:
        oid = to_object_id(assignment_id)
        if oid is None:
            return None
        assignment = await self.db.assignments.find_one({"_id": oid})
        return convert_doc_to_model(assignment)

    async def get_assignments(self, assigned_to: Optional[str] = None,
                              day: Optional[str] = None) -> List[Assignment]:
        query = {}
        if assigned_to is not None:
            query["assignedTo"] = ObjectId(assigned_to)
        if day:
            query["day"] = day
        assignments = await self.db.assignments.find(query).to_list(length=None)
        return [convert_doc_to_model(assignment) for assignment in assignments]

    async def get_assignments_due_between(self, user_id: str, start: datetime,
                                          end: datetime) -> List[Assignment]:
        cursor = self.db.assignments.find({
            "assignedTo": ObjectId(user_id),
            "deadline": {"$gte": start, "$lte": end}
        }).sort("deadline", ASCENDING)
        assignments = await cursor.to_list(length=None)
        return [convert_doc_to_model(assignment) for assignment in assignments]

    async def update_assignment(self, assignment_id: str, fields: dict) -> Optional[Assignment]:
        update_data = dict(fields)
        if 'assignedTo' in update_data:
            update_data['assignedTo'] = [
                ObjectId(user_id) for user_id in _unique(update_data['assignedTo'])
            ]
        if update_data:
            await self.db.assignments.update_one(
                {"_id": ObjectId(assignment_id)},
                {"$set": update_data}
            )
        return await self.get_assignment_by_id(assignment_id)

    async def delete_assignment(self, assignment_id: str) -> bool:
        oid = to_object_id(assignment_id)
        if oid is None:
            return False
        result = await self.db.assignments.delete_one({"_id": oid})
        return result.deleted_count > 0

    # Embedded submission operations

    async def add_submission(self, assignment_id: str, submission: Submission) -> bool:
        """Append a submission unless the user already has one; False if one exists."""
        user_oid = ObjectId(submission.user)
        submission_data = submission.model_dump(by_alias=True, exclude={"id", "user"})
        submission_data['_id'] = ObjectId()
        submission_data['user'] = user_oid

        result = await self.db.assignments.update_one(
            {"_id": ObjectId(assignment_id), "submissions.user": {"$ne": user_oid}},
            {"$push": {"submissions": submission_data}}
        )
        return result.modified_count > 0

    async def update_submission(self, assignment_id: str, submission_id: str,
                                fields: dict) -> bool:
        """Set fields on one embedded submission in place."""
        update_data = {f"submissions.$.{key}": value for key, value in fields.items()}
        result = await self.db.assignments.update_one(
            {"_id": ObjectId(assignment_id), "submissions._id": ObjectId(submission_id)},
            {"$set": update_data}
        )
        return result.matched_count > 0
