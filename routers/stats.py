from fastapi import APIRouter
from sqlalchemy import func
from sqlmodel import select

import ledger
from db import SessionDep
from models import DonationRequest, User
from schemas import DashboardStats
from .auth import CallerEmailDep

router = APIRouter(tags=["stats"])


@router.get("/dashboard-stats", response_model=DashboardStats)
def dashboard_stats(session: SessionDep, caller: CallerEmailDep):
    """Live totals for the dashboard cards; never cached."""
    total_users = session.exec(select(func.count()).select_from(User)).one()
    total_requests = session.exec(select(func.count()).select_from(DonationRequest)).one()
    return DashboardStats(
        total_users=total_users,
        total_requests=total_requests,
        total_funding=ledger.total_funding(session),
    )
