"""Statements shared by the listing, summary and export endpoints.

Filtering and ordering live here only; every consumer executes these
statements as-is.
"""
from datetime import date

from sqlalchemy import func
from sqlmodel import col, select

from models import Project, TimeEntry, User


def apply_date_filter(stmt, column, date_from: date | None, date_to: date | None):
    """Restrict ``stmt`` to an optional, inclusive work-date range."""
    if date_from and date_to:
        return stmt.where(column.between(date_from, date_to))
    if date_from:
        return stmt.where(column >= date_from)
    if date_to:
        return stmt.where(column <= date_to)
    return stmt


def build_entries_query(date_from: date | None = None, date_to: date | None = None):
    """Entries joined with user and project names, most recent first."""
    stmt = (
        select(
            TimeEntry.id,
            TimeEntry.user_id,
            TimeEntry.project_id,
            TimeEntry.work_date,
            TimeEntry.start_time,
            TimeEntry.end_time,
            TimeEntry.break_minutes,
            TimeEntry.duration_minutes,
            TimeEntry.note,
            TimeEntry.created_at,
            col(User.name).label("user_name"),
            col(Project.name).label("project_name"),
        )
        .join(User, User.id == TimeEntry.user_id)
        .join(Project, Project.id == TimeEntry.project_id)
    )
    stmt = apply_date_filter(stmt, col(TimeEntry.work_date), date_from, date_to)
    return stmt.order_by(col(TimeEntry.work_date).desc(), col(TimeEntry.id).desc())


def build_summary_query(date_from: date | None = None, date_to: date | None = None):
    """Per-user entry count and total minutes, ordered by user name."""
    stmt = select(
        TimeEntry.user_id,
        col(User.name).label("user_name"),
        func.count().label("entries"),
        func.coalesce(func.sum(TimeEntry.duration_minutes), 0).label("minutes"),
    ).join(User, User.id == TimeEntry.user_id)
    stmt = apply_date_filter(stmt, col(TimeEntry.work_date), date_from, date_to)
    return stmt.group_by(TimeEntry.user_id, User.name).order_by(User.name)


def hours_from_minutes(minutes: int) -> float:
    """Minutes as hours, rounded to two decimals."""
    return round(minutes / 60, 2)
