import logging
from contextlib import asynccontextmanager
from datetime import date

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlmodel import Session, col, delete, select

from config import Settings, load_settings
from db import create_db_and_tables, get_session, make_engine
from models import Project, TimeEntry, User
from queries import build_entries_query, build_summary_query, hours_from_minutes
from report import (
    CSV_MEDIA_TYPE,
    ENTRIES_CSV_FILENAME,
    ENTRIES_XLSX_FILENAME,
    SUMMARY_XLSX_FILENAME,
    XLSX_MEDIA_TYPE,
    entry_columns,
    render_entries_csv,
    render_entries_xlsx,
    render_summary_xlsx,
)
from schemas import ProjectResponse, SummaryRow, TimeEntryCreate, TimeEntryResponse, UserResponse
from seed import seed_database
from validation import EntryValidationError, compute_duration, parse_hhmm

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


router = APIRouter(prefix="/api")
projects_router = APIRouter(prefix="/api")


@router.get("/users", response_model=list[UserResponse])
def list_users(session: Session = Depends(get_session)):
    """List all users sorted by name."""
    try:
        users = session.exec(select(User).order_by(User.name, User.id)).all()
        return [UserResponse(id=u.id, name=u.name) for u in users]
    except Exception as e:
        logger.exception(f"Error listing users: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error") from e


@projects_router.get("/projects", response_model=list[ProjectResponse])
def list_projects(session: Session = Depends(get_session)):
    """List all projects sorted by name."""
    try:
        projects = session.exec(select(Project).order_by(Project.name, Project.id)).all()
        return [ProjectResponse(id=p.id, name=p.name) for p in projects]
    except Exception as e:
        logger.exception(f"Error listing projects: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error") from e


@router.get("/time-entries", response_model=list[TimeEntryResponse])
def list_time_entries(
    date_from: date | None = Query(None, alias="from", description="Start date filter (YYYY-MM-DD)"),
    date_to: date | None = Query(None, alias="to", description="End date filter (YYYY-MM-DD)"),
    session: Session = Depends(get_session),
):
    """Get entries with optional date filtering, most recent first."""
    logger.info(f"Entries request - from: {date_from}, to: {date_to}")

    try:
        rows = session.exec(build_entries_query(date_from, date_to)).all()
        return [TimeEntryResponse.model_validate(dict(row._mapping)) for row in rows]
    except Exception as e:
        logger.exception(f"Error getting entries: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error") from e


@router.post("/time-entries", response_model=TimeEntryResponse, status_code=201)
def create_time_entry(
    payload: TimeEntryCreate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Validate and store one work session."""
    if not payload.user_id:
        raise HTTPException(status_code=400, detail="user_id is required")
    if not payload.work_date:
        raise HTTPException(status_code=400, detail="work_date is required (YYYY-MM-DD)")
    if settings.show_projects and not payload.project_id:
        raise HTTPException(status_code=400, detail="project_id is required")

    break_minutes = (payload.break_minutes or 0) if settings.track_breaks else 0
    try:
        duration = compute_duration(payload.start_time, payload.end_time, break_minutes)
    except EntryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        if settings.show_projects:
            project = session.get(Project, payload.project_id)
            if project is None:
                raise HTTPException(status_code=400, detail=f"Unknown project_id {payload.project_id}")
        else:
            project = session.exec(select(Project).order_by(Project.id)).first()
            if project is None:
                raise HTTPException(status_code=500, detail="No project configured")

        user = session.get(User, payload.user_id)
        if user is None:
            raise HTTPException(status_code=400, detail=f"Unknown user_id {payload.user_id}")

        entry = TimeEntry(
            user_id=user.id,
            project_id=project.id,
            work_date=payload.work_date,
            start_time=parse_hhmm(payload.start_time),
            end_time=parse_hhmm(payload.end_time),
            break_minutes=break_minutes,
            duration_minutes=duration,
            note=payload.note or None,
        )
        session.add(entry)
        session.commit()
        session.refresh(entry)

        logger.info(
            f"Created entry {entry.id} for user {user.id} on {entry.work_date} "
            f"({duration} minutes)"
        )
        return TimeEntryResponse(
            **entry.model_dump(), user_name=user.name, project_name=project.name
        )

    except HTTPException:
        raise
    except Exception as e:
        session.rollback()
        logger.exception(f"Error creating entry: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error") from e


@router.delete("/time-entries/{entry_id}", status_code=204, response_class=Response)
def delete_time_entry(
    entry_id: int,
    user_id: int | None = Query(None, description="Owner of the entry"),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Delete an entry; when gated, only if user_id matches its owner."""
    logger.info(f"Delete entry request for ID: {entry_id} (user_id: {user_id})")

    if not entry_id:
        raise HTTPException(status_code=400, detail="id is required")
    if settings.delete_requires_user and not user_id:
        raise HTTPException(status_code=400, detail="user_id is required")

    try:
        stmt = delete(TimeEntry).where(col(TimeEntry.id) == entry_id)
        if settings.delete_requires_user:
            stmt = stmt.where(col(TimeEntry.user_id) == user_id)
        result = session.exec(stmt)

        if not result.rowcount:
            session.rollback()
            raise HTTPException(
                status_code=404, detail="No entry to delete (wrong id or user)"
            )

        session.commit()
        logger.info(f"Successfully deleted entry {entry_id}")
        return Response(status_code=204)

    except HTTPException:
        raise
    except Exception as e:
        session.rollback()
        logger.exception(f"Error deleting entry: {str(e)}")
        raise HTTPException(status_code=500, detail="Delete failed") from e


@router.get("/summary", response_model=list[SummaryRow])
def get_summary(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    session: Session = Depends(get_session),
):
    """Per-user entry count and total time over the optional date range."""
    logger.info(f"Summary request - from: {date_from}, to: {date_to}")

    try:
        rows = session.exec(build_summary_query(date_from, date_to)).all()
        return [
            SummaryRow(
                user_id=row.user_id,
                user_name=row.user_name,
                entries=int(row.entries),
                minutes=int(row.minutes or 0),
                hours=hours_from_minutes(int(row.minutes or 0)),
            )
            for row in rows
        ]
    except Exception as e:
        logger.exception(f"Error getting summary: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error") from e


@router.get("/export.csv")
def export_csv(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Download the filtered entry listing as semicolon-separated CSV."""
    logger.info(f"CSV export - from: {date_from}, to: {date_to}")

    try:
        rows = session.exec(build_entries_query(date_from, date_to)).all()
        columns = entry_columns(settings.show_projects, settings.track_breaks)
        content = render_entries_csv(rows, columns)
    except Exception as e:
        logger.exception(f"CSV export failed: {str(e)}")
        raise HTTPException(status_code=500, detail="CSV export failed") from e
    return _attachment(content, CSV_MEDIA_TYPE, ENTRIES_CSV_FILENAME)


@router.get("/export.xlsx")
def export_xlsx(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Download the filtered entry listing as an Excel workbook."""
    logger.info(f"Excel export - from: {date_from}, to: {date_to}")

    try:
        rows = session.exec(build_entries_query(date_from, date_to)).all()
        columns = entry_columns(settings.show_projects, settings.track_breaks)
        content = render_entries_xlsx(rows, columns)
    except Exception as e:
        logger.exception(f"Excel export failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Excel export failed") from e
    return _attachment(content, XLSX_MEDIA_TYPE, ENTRIES_XLSX_FILENAME)


@router.get("/export-summary.xlsx")
def export_summary_xlsx(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    session: Session = Depends(get_session),
):
    """Download the per-user summary as an Excel workbook with a totals row."""
    logger.info(f"Summary Excel export - from: {date_from}, to: {date_to}")

    try:
        rows = session.exec(build_summary_query(date_from, date_to)).all()
        content = render_summary_xlsx(rows)
    except Exception as e:
        logger.exception(f"Summary Excel export failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Summary Excel export failed") from e
    return _attachment(content, XLSX_MEDIA_TYPE, SUMMARY_XLSX_FILENAME)


@router.get("/health")
def health(session: Session = Depends(get_session)):
    """Check that the database answers."""
    try:
        session.exec(text("SELECT 1"))
    except Exception as e:
        logger.exception(f"Health check failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error") from e
    return {"ok": True}


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as a plain 400 instead of FastAPI's 422."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        if first.get("type") == "json_invalid":
            detail = "Invalid JSON body"
        else:
            field = ".".join(
                str(part) for part in first.get("loc", ()) if part != "body" and not isinstance(part, int)
            )
            detail = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        detail = "Invalid request"
    logger.info(f"Rejected request to {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed reference data before serving."""
    engine = app.state.engine
    try:
        create_db_and_tables(engine)
        with Session(engine) as session:
            seed_database(session, app.state.settings)
    except Exception:
        logger.exception("Database initialization failed")
        raise

    logger.info("Database initialized")
    yield
    engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    logging.getLogger().setLevel(settings.log_level)

    app = FastAPI(title="Time Registration API", version="2.3.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = make_engine(settings.database_url)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(router)
    if settings.show_projects:
        app.include_router(projects_router)

    @app.get("/")
    def root():
        """Root endpoint."""
        return {"message": "Time Registration API", "docs": "/docs"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    logger.info(f"Time registration listening on http://0.0.0.0:{settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
