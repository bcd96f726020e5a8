"""
Teacher/admin routes: roster, analytics and management lists.

Endpoints:
- GET /api/staff/roster
- POST /api/staff/roster/sort/{key}
- GET /api/staff/roster/reminder
- GET /api/staff/roster/detail
- GET /api/staff/analytics
- POST /api/staff/analytics/filters
- POST /api/staff/analytics/status/{status}
- POST /api/staff/analytics/student/{name}
- DELETE /api/staff/analytics/chart-filters
- GET /api/staff/{users|subjects|lessons|questions}
- POST /api/staff/items/{sheet_name}
- DELETE /api/staff/items/{sheet_name}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from ..clients import StoreError
from ..clients.records import SHEET_COLUMNS
from ..models import FilterChange, ItemSave, RosterFilters, RosterRow, SortConfig, User
from ..services import analytics_view, attempt_detail, build_roster, next_sort, reminder_mail, roster_view
from ..services.analytics import AnalyticsFilterState
from ..session import EduPulseSession
from .deps import get_active_session, get_current_user, parse_filter

logger = logging.getLogger(__name__)

SAVE_FAILED = "Lỗi khi lưu dữ liệu!"
DELETE_FAILED = "Lỗi khi xóa dữ liệu!"


def create_staff_routes() -> APIRouter:
    """Create roster, analytics and management routes."""

    router = APIRouter(prefix="/api/staff", tags=["staff"])

    def find_row(session: EduPulseSession, account: str, lesson_id: int) -> RosterRow:
        scoped = session.scoped()
        rows = build_roster(scoped.students, scoped.subjects, scoped.lessons, scoped.results)
        row = next((r for r in rows if r.account == account and r.lesson_id == lesson_id), None)
        if row is None:
            raise HTTPException(status_code=404, detail="Roster entry not found")
        return row

    def analytics_state(session: EduPulseSession, user: User) -> AnalyticsFilterState:
        if session.analytics is None or session.analytics.user is not user:
            session.analytics = AnalyticsFilterState(user)
        return session.analytics

    def current_analytics(session: EduPulseSession, user: User):
        options, report = analytics_view(
            analytics_state(session, user), session.scoped(), session.snapshot.all_classes
        )
        return {"options": options, "report": report}

    # ============ ROSTER ============

    @router.get("/roster")
    async def get_roster(
        class_name: Optional[str] = None,
        subject: Optional[str] = None,
        lesson: Optional[str] = None,
        status: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Student x lesson table; "ALL" or an omitted filter matches everything."""
        try:
            if sort is not None:
                session.roster_sort = SortConfig(key=sort, order=order or "asc")

            filters = RosterFilters(
                class_name=parse_filter(class_name),
                subject=parse_filter(subject),
                lesson=parse_filter(lesson),
                status=parse_filter(status),
            )
            return roster_view(session.scoped(), filters, session.roster_sort)

        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception as e:
            logger.error(f"Error building roster: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/roster/sort/{key}")
    async def toggle_roster_sort(
        key: str,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Clicking a column header: same column flips the order, a new one starts ascending."""
        try:
            session.roster_sort = next_sort(session.roster_sort, key)
        except ValidationError:
            raise HTTPException(status_code=400, detail=f"Cannot sort by {key}")
        return session.roster_sort

    @router.get("/roster/reminder")
    async def get_reminder(
        account: str,
        lesson_id: int,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        row = find_row(session, account, lesson_id)
        try:
            return reminder_mail(row)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.get("/roster/detail")
    async def get_attempt_detail(
        account: str,
        lesson_id: int,
        tab: str = "ALL",
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Review of a student's best attempt at a lesson."""
        row = find_row(session, account, lesson_id)
        if row.result_id is None:
            raise HTTPException(status_code=404, detail="No attempt for this lesson")

        result = next((r for r in session.snapshot.results if r.result_id == row.result_id), None)
        lesson = session.snapshot.lesson_by_id(lesson_id)
        if result is None or lesson is None:
            raise HTTPException(status_code=404, detail="Attempt not found")

        return attempt_detail(result, lesson, session.snapshot.questions_of_lesson(lesson_id), tab)

    # ============ ANALYTICS ============

    @router.get("/analytics")
    async def get_analytics(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        return current_analytics(session, user)

    @router.post("/analytics/filters")
    async def change_filter(
        change: FilterChange,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Structural filter change; narrower filters and chart filters reset."""
        state = analytics_state(session, user)
        value = parse_filter(change.value)

        if change.field == "grade":
            try:
                state.select_grade(int(value) if value is not None else None)
            except ValueError:
                raise HTTPException(status_code=400, detail=f"Invalid grade: {value}")
        elif change.field == "class_name":
            state.select_class(value)
        elif change.field == "subject":
            state.select_subject(value)
        else:
            state.select_lesson(value)

        return current_analytics(session, user)

    @router.post("/analytics/status/{status}")
    async def toggle_status(
        status: str,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Pie-chart click."""
        analytics_state(session, user).toggle_status(status)
        return current_analytics(session, user)

    @router.post("/analytics/student/{name}")
    async def toggle_student(
        name: str,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Leaderboard bar click."""
        analytics_state(session, user).toggle_student(name)
        return current_analytics(session, user)

    @router.delete("/analytics/chart-filters")
    async def clear_chart_filters(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        analytics_state(session, user).clear_chart_filters()
        return current_analytics(session, user)

    # ============ MANAGEMENT ============

    @router.get("/users")
    async def list_users(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        return session.scoped().users

    @router.get("/subjects")
    async def list_subjects(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        return session.scoped().subjects

    @router.get("/lessons")
    async def list_lessons(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        return session.scoped().lessons

    @router.get("/questions")
    async def list_questions(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        return session.scoped().questions

    @router.post("/items/{sheet_name}")
    async def save_item(
        sheet_name: str,
        request: ItemSave,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Upsert a row in a store sheet, then re-fetch the snapshot."""
        try:
            await session.store.save_item(sheet_name, request.item, request.id_key)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StoreError as e:
            logger.error(f"Error saving {sheet_name} item: {e}")
            raise HTTPException(status_code=502, detail=SAVE_FAILED)

        await session.refresh()
        return {"success": True}

    @router.delete("/items/{sheet_name}")
    async def delete_item(
        sheet_name: str,
        id_value: str,
        id_key: str,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        if sheet_name not in SHEET_COLUMNS:
            raise HTTPException(status_code=400, detail=f"Unknown sheet: {sheet_name}")
        try:
            await session.store.delete_item(sheet_name, id_value, id_key)
        except StoreError as e:
            logger.error(f"Error deleting {sheet_name} item {id_value}: {e}")
            raise HTTPException(status_code=502, detail=DELETE_FAILED)

        await session.refresh()
        return {"success": True}

    return router
