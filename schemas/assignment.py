from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from models.assignment import Assignment, DayEnum, FileReference, Submission
from utils.dates import as_utc, to_naive_utc


class CamelModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True
    )


class AssignmentCreate(CamelModel):
    user_id: Optional[str] = None  # acting admin
    title: str = Field(min_length=1)
    description: Optional[str] = ""
    subject: str = Field(min_length=1)
    day: DayEnum
    start_time: str = Field(min_length=1)
    end_time: str = Field(min_length=1)
    deadline: datetime
    assigned_to: List[str] = Field(default_factory=list)

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class AssignmentUpdate(CamelModel):
    user_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    subject: Optional[str] = None
    day: Optional[DayEnum] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    deadline: Optional[datetime] = None
    assigned_to: Optional[List[str]] = None

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value) if value else value

    def supplied_fields(self) -> dict:
        """Fields to overwrite; empty values count as not supplied."""
        data = self.model_dump(exclude={"user_id"}, by_alias=True)
        return {key: value for key, value in data.items() if value}


class SubmitRequest(CamelModel):
    user_id: Optional[str] = None
    content: Optional[str] = ""
    attachments: List[FileReference] = Field(default_factory=list)
    images: List[FileReference] = Field(default_factory=list)


class GradeRequest(CamelModel):
    user_id: Optional[str] = None  # acting admin
    grade: float
    feedback: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class AssignmentResponse(BaseModel):
    message: str
    assignment: Assignment


class SubmissionResponse(CamelModel):
    message: str
    submission: Submission
    failed_uploads: List[str] = Field(default_factory=list)


class SubmitterOut(BaseModel):
    id: str = Field(alias="_id")
    username: str
    email: str

    model_config = ConfigDict(populate_by_name=True)


class SubmissionView(Submission):
    """A submission with its author resolved; user is None when the account is gone."""
    user: Optional[SubmitterOut] = None


class SubmissionDetail(CamelModel):
    submission: SubmissionView
    assignment_title: str
    assignment_description: Optional[str] = ""
    deadline: datetime

    @field_serializer("deadline", when_used="json")
    def serialize_deadline(self, value: datetime) -> datetime:
        return as_utc(value)


class AssignmentStats(CamelModel):
    id: str = Field(alias="_id")
    title: str
    deadline: datetime
    assigned: int
    submitted: int
    graded: int
    not_submitted: int
    average_grade: Optional[float] = None

    @field_serializer("deadline", when_used="json")
    def serialize_deadline(self, value: datetime) -> datetime:
        return as_utc(value)


class StatsSummary(CamelModel):
    total_assignments: int
    total_assigned: int
    total_submitted: int
    total_graded: int
    total_not_submitted: int
    assignments: List[AssignmentStats]
