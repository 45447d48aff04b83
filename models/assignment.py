from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel
import enum

from utils.dates import as_utc


class DayEnum(str, enum.Enum):
    senin = "Senin"
    selasa = "Selasa"
    rabu = "Rabu"
    kamis = "Kamis"
    jumat = "Jumat"
    sabtu = "Sabtu"
    minggu = "Minggu"


class SubmissionStatus(str, enum.Enum):
    submitted = "submitted"
    graded = "graded"


class FileReference(BaseModel):
    """A file held by the media host; only the reference is stored here."""
    url: str
    public_id: str
    format: Optional[str] = None
    resource_type: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel
    )


class Submission(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    user: str
    content: str = ""
    attachments: List[FileReference] = Field(default_factory=list)
    images: List[FileReference] = Field(default_factory=list)
    submitted_at: Optional[datetime] = None
    status: SubmissionStatus = SubmissionStatus.submitted
    grade: Optional[float] = None
    feedback: Optional[str] = None

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True
    )

    @field_serializer("submitted_at", when_used="json")
    def serialize_submitted_at(self, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class Assignment(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    title: str
    description: Optional[str] = ""
    subject: str
    day: DayEnum
    start_time: str
    end_time: str
    deadline: datetime
    user: str  # creating admin
    assigned_to: List[str] = Field(default_factory=list)
    is_completed: bool = False
    created_at: Optional[datetime] = None
    attachments: List[FileReference] = Field(default_factory=list)
    images: List[FileReference] = Field(default_factory=list)
    submissions: List[Submission] = Field(default_factory=list)

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True
    )

    # Stored as naive UTC; sent with an explicit offset
    @field_serializer("deadline", "created_at", when_used="json")
    def serialize_timestamps(self, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def submissions_by_user(self) -> Dict[str, Submission]:
        return {submission.user: submission for submission in self.submissions}

    def submission_for(self, user_id: str) -> Optional[Submission]:
        return self.submissions_by_user.get(user_id)

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        for submission in self.submissions:
            if submission.id == submission_id:
                return submission
        return None

    def is_assigned(self, user_id: str) -> bool:
        return user_id in self.assigned_to
