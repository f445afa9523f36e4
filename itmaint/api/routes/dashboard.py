"""
Dashboard Routes - aggregated metrics and chart data
"""
import calendar
from collections import OrderedDict
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, desc, func
from sqlalchemy.orm import Session

from itmaint.core.config import settings
from itmaint.database import get_db
from itmaint.dependencies import get_current_user
from itmaint.models.equipment import Equipment, EquipmentStatus
from itmaint.models.intervention import Intervention, InterventionStatus
from itmaint.models.user import User
from itmaint.api.routes.interventions import build_intervention_response

router = APIRouter(tags=["dashboard"])


def months_ago(today: date, months: int) -> date:
    """Same day `months` calendar months earlier, clamped to the month length."""
    month_index = today.year * 12 + today.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(today.day, calendar.monthrange(year, month)[1]))


@router.get("/stats")
def dashboard_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Global equipment and intervention metrics"""
    today = date.today()
    month_start = today.replace(day=1)
    next_month = date(today.year + 1, 1, 1) if today.month == 12 else date(today.year, today.month + 1, 1)

    total_equipments = db.query(func.count(Equipment.id)).scalar() or 0
    active_equipments = db.query(func.count(Equipment.id)).filter(
        Equipment.status == EquipmentStatus.ACTIVE.value
    ).scalar() or 0

    total_interventions = db.query(func.count(Intervention.id)).scalar() or 0
    this_month = db.query(func.count(Intervention.id)).filter(
        Intervention.scheduled_date >= month_start,
        Intervention.scheduled_date < next_month,
    ).scalar() or 0
    completed = db.query(func.count(Intervention.id)).filter(
        Intervention.status == InterventionStatus.DONE.value
    ).scalar() or 0
    overdue = db.query(func.count(Intervention.id)).filter(
        Intervention.status == InterventionStatus.PLANNED.value,
        Intervention.scheduled_date < today,
    ).scalar() or 0
    upcoming = db.query(func.count(Intervention.id)).filter(
        Intervention.status == InterventionStatus.PLANNED.value,
        Intervention.scheduled_date >= today,
        Intervention.scheduled_date <= today + timedelta(days=settings.UPCOMING_DAYS),
    ).scalar() or 0

    completion_rate = round(completed / total_interventions * 100, 1) if total_interventions else 0

    return {
        "equipments": {
            "total": total_equipments,
            "active": active_equipments,
        },
        "interventions": {
            "total": total_interventions,
            "thisMonth": this_month,
            "completed": completed,
            "overdue": overdue,
            "upcoming": upcoming,
            "completionRate": completion_rate,
        },
    }


@router.get("/charts/interventions-by-month")
def interventions_by_month(
    months: int = Query(6, ge=1, le=36),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Interventions per scheduled month since `months` months ago, split by outcome"""
    since = months_ago(date.today(), months)
    rows = (
        db.query(Intervention.scheduled_date, Intervention.status)
        .filter(Intervention.scheduled_date >= since)
        .order_by(Intervention.scheduled_date)
        .all()
    )

    buckets = OrderedDict()
    for scheduled_date, intervention_status in rows:
        key = scheduled_date.strftime("%Y-%m")
        bucket = buckets.setdefault(key, {"month": key, "total": 0, "completed": 0, "planned": 0, "not_done": 0})
        bucket["total"] += 1
        if intervention_status == InterventionStatus.DONE.value:
            bucket["completed"] += 1
        elif intervention_status == InterventionStatus.PLANNED.value:
            bucket["planned"] += 1
        elif intervention_status == InterventionStatus.NOT_DONE.value:
            bucket["not_done"] += 1

    return list(buckets.values())


@router.get("/charts/interventions-by-type")
def interventions_by_type(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    count = func.count(Intervention.id).label("count")
    rows = db.query(Intervention.type, count).group_by(Intervention.type).order_by(desc(count)).all()
    return [{"type": t, "count": c} for t, c in rows]


@router.get("/charts/equipments-by-type")
def equipments_by_type(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    count = func.count(Equipment.id).label("count")
    rows = db.query(Equipment.type, count).group_by(Equipment.type).order_by(desc(count)).all()
    return [{"type": t, "count": c} for t, c in rows]


@router.get("/recent-interventions")
def recent_interventions(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Most recently updated interventions"""
    interventions = (
        db.query(Intervention)
        .order_by(desc(Intervention.updated_at))
        .limit(limit)
        .all()
    )
    return [build_intervention_response(i) for i in interventions]


@router.get("/recurring-issues")
def recurring_issues(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Equipments with more than two interventions over the last six months"""
    since = datetime.combine(months_ago(date.today(), 6), datetime.min.time())
    intervention_count = func.count(Intervention.id).label("intervention_count")
    failed_count = func.sum(
        case((Intervention.status == InterventionStatus.NOT_DONE.value, 1), else_=0)
    ).label("failed_count")

    rows = (
        db.query(Equipment.id, Equipment.name, Equipment.type, Equipment.model, intervention_count, failed_count)
        .join(Intervention, Intervention.equipment_id == Equipment.id)
        .filter(Intervention.created_at >= since)
        .group_by(Equipment.id, Equipment.name, Equipment.type, Equipment.model)
        .having(func.count(Intervention.id) > 2)
        .order_by(desc(failed_count), desc(intervention_count))
        .limit(10)
        .all()
    )

    return [
        {
            "id": str(row.id),
            "name": row.name,
            "type": row.type,
            "model": row.model,
            "intervention_count": row.intervention_count,
            "failed_count": int(row.failed_count or 0),
        }
        for row in rows
    ]
