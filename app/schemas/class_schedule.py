from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.utils.session_validation import validate_session


class CamelModel(BaseModel):
    # JSON 用 camelCase (dayOfWeek / startTime ...)，Python 端用 snake_case
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SessionIn(CamelModel):
    day_of_week: int = Field(strict=True)
    start_time: str
    end_time: str

    @model_validator(mode="after")
    def _validate_window(self):
        validate_session(self.day_of_week, self.start_time, self.end_time)
        return self


class SessionOut(CamelModel):
    day_of_week: int
    start_time: str
    end_time: str


class ClassScheduleData(CamelModel):
    """
    A class and its weekly sessions, not persisted yet.
    The seed generator may produce fewer sessions than it aimed for, even none.
    """
    name: str
    grade: int = Field(ge=6, le=12, strict=True)
    sessions: List[SessionIn] = Field(default_factory=list)


class ClassCreate(ClassScheduleData):
    sessions: List[SessionIn] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Class name is required")
        return v


class ClassUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    grade: Optional[int] = Field(default=None, ge=6, le=12, strict=True)
    sessions: Optional[List[SessionIn]] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _validate_update(self):
        if self.name is not None:
            self.name = self.name.strip()
            if not self.name:
                raise ValueError("Class name is required")
        if self.sessions is not None and len(self.sessions) == 0:
            raise ValueError("At least one session is required")
        return self


class ClassOut(CamelModel):
    id: int
    name: str
    grade: int
    sessions: List[SessionOut] = []
    enrolled_students: List[int] = []
    is_active: bool
    cancelled_dates: List[date] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConflictCheckIn(CamelModel):
    session: SessionIn
    grade: Optional[int] = Field(default=None, ge=6, le=12, strict=True)
    exclude_class_id: Optional[int] = None


class ConflictCheckOut(CamelModel):
    conflict: bool
    class_id: Optional[int] = None
    class_name: Optional[str] = None
    session: Optional[SessionOut] = None


class CancelIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cancelled_on: date = Field(alias="date")


class StudentAddIn(CamelModel):
    student_id: int


class ImportRowError(BaseModel):
    row: int
    reason: str


class ImportResultOut(BaseModel):
    created: int
    sessions: int
    skipped: List[ImportRowError] = []
