from datetime import date, datetime, time

from pydantic import BaseModel, field_serializer


class TimeEntryCreate(BaseModel):
    # Everything optional so missing fields get the ordered 400 messages
    user_id: int | None = None
    project_id: int | None = None
    work_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    break_minutes: int | None = None
    note: str | None = None


class UserResponse(BaseModel):
    id: int
    name: str


class ProjectResponse(BaseModel):
    id: int
    name: str


class TimeEntryResponse(BaseModel):
    id: int
    user_id: int
    project_id: int
    work_date: date
    start_time: time
    end_time: time
    break_minutes: int
    duration_minutes: int
    note: str | None = None
    created_at: datetime | None = None
    user_name: str | None = None
    project_name: str | None = None

    @field_serializer("start_time", "end_time")
    def serialize_hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")


class SummaryRow(BaseModel):
    user_id: int
    user_name: str
    entries: int
    minutes: int
    hours: float
