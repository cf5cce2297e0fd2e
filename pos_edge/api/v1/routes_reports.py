from fastapi import APIRouter, Depends

from pos_edge.api.v1.deps import get_terminal, require_super_admin
from pos_edge.domain.reports.service import DashboardStats, Period, PeriodReport, dashboard_stats, period_report
from pos_edge.domain.terminal import Terminal

router = APIRouter(
    prefix="/api/v1/reports",
    tags=["reports"],
    dependencies=[Depends(require_super_admin)],
)


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard_endpoint(terminal: Terminal = Depends(get_terminal)):
    return dashboard_stats(terminal.state.transactions)


@router.get("/{period}", response_model=PeriodReport)
async def period_report_endpoint(period: Period, terminal: Terminal = Depends(get_terminal)):
    return period_report(terminal.state.transactions, period, terminal.state.products)
