"""Shift Pay MCP Server - FastMCP implementation for timer and pay tools."""

import logging
from datetime import date as date_type
from dataclasses import asdict
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from shiftpay.sdk import (
    HourAllocationDeriver,
    HoursAndMinutes,
    JsonHistoryStore,
    JsonShiftStore,
    JsonSubmissionStore,
    JsonTimerStore,
    PayCalculationInput,
    PayCalculationOrchestrator,
    ProfileSettingsStore,
    TimerStateMachine,
    configure_logging,
    summarize_history,
)

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("shift-pay")


# --- Tools ---

@mcp.tool()
async def timer_status() -> dict[str, Any]:
    """Get the shift timer state: status, worked time, current break and break list (times in ms)."""
    try:
        machine = TimerStateMachine(JsonTimerStore(), shift_store=JsonShiftStore())
        reading = machine.read()
        session = machine.session
        return {
            "date": session.date if session else None,
            **asdict(reading),
        }
    except Exception as e:
        logger.error(f"Error reading timer: {e}")
        return {"error": str(e), "status": None}


@mcp.tool()
async def compute_pay(
    date: str | None = Field(default=None, description="Date to calculate (YYYY-MM-DD, default today)"),
    mode: str = Field(default="tracker", description="'tracker' (hours from tracked shifts) or 'manual'"),
    hours: str | None = Field(default=None, description="Base hours, e.g. '8', '7:30' or '7h 30m'"),
    overtime: str | None = Field(default=None, description="Overtime hours (same formats)"),
    rate_id: str | None = Field(default=None, description="Saved base rate ID (default: first saved base rate)"),
    manual_rate: float | None = Field(default=None, description="Base rate override"),
    save: bool = Field(default=False, description="Save the calculation to pay history"),
) -> dict[str, Any]:
    """Calculate a day's pay breakdown (base, overtime, uplifts, allowances, gross, tax, NI, net)."""
    try:
        settings_store = ProfileSettingsStore()
        settings = settings_store.get_settings()
        default_rate = next((r.id for r in settings.pay_rates if r.type != "overtime"), None)
        calc_input = PayCalculationInput(
            mode=mode,
            date=date or date_type.today().isoformat(),
            hourly_rate_id=rate_id or default_rate,
            hours_worked=HoursAndMinutes.parse(hours) if hours else HoursAndMinutes(),
            overtime_worked=HoursAndMinutes.parse(overtime) if overtime else HoursAndMinutes(),
            manual_base_rate=manual_rate,
        )
        orchestrator = PayCalculationOrchestrator(
            settings_store, HourAllocationDeriver(JsonShiftStore()), JsonHistoryStore(),
        )
        result = orchestrator.compute(calc_input, settings)
        if result is None:
            return {
                "date": calc_input.date,
                "breakdown": None,
                "reason": "No base rate configured",
            }

        saved_id = orchestrator.save(calc_input, settings).id if save else None
        return {
            "date": calc_input.date,
            "currency": settings.preferences.currency,
            "breakdown": result.breakdown.display_amounts(),
            "rates": result.rates.model_dump(),
            "hours": result.calc_snapshot().model_dump(mode="json"),
            "saved_id": saved_id,
        }

    except Exception as e:
        logger.error(f"Error computing pay: {e}")
        return {"error": str(e), "breakdown": None}


@mcp.tool()
async def list_pay_history(
    limit: int = Field(default=20, description="Maximum number of entries to return (default 20)"),
) -> dict[str, Any]:
    """List saved pay calculations, newest first."""
    try:
        entries = JsonHistoryStore().get_pay_history()
        limited = entries[:limit]
        return {
            "entries": [
                {
                    "id": e.id,
                    "date": e.input.date,
                    "mode": e.input.mode,
                    "gross": e.calculated_pay.display_amounts()["gross"],
                    "net": e.calculated_pay.display_amounts()["total"],
                    "created_at": e.created_at,
                }
                for e in limited
            ],
            "count": len(limited),
            "total_available": len(entries),
        }

    except Exception as e:
        logger.error(f"Error listing pay history: {e}")
        return {"error": str(e), "entries": [], "count": 0}


@mcp.tool()
async def pay_period_summary(
    period: str = Field(default="week", description="'week' or 'month'"),
    date: str | None = Field(default=None, description="Date inside the period (YYYY-MM-DD, default today)"),
) -> dict[str, Any]:
    """Sum saved calculations for the pay week or month and report progress towards the goal."""
    try:
        settings = ProfileSettingsStore().get_settings()
        summary = summarize_history(
            JsonHistoryStore().get_pay_history(),
            period,
            date or date_type.today().isoformat(),
            settings.pay_rules.pay_period,
            settings.preferences,
        )
        return {**asdict(summary), "progress": summary.progress, "remaining": summary.remaining}

    except Exception as e:
        logger.error(f"Error summarizing pay history: {e}")
        return {"error": str(e)}


@mcp.tool()
async def list_submitted_days(
    period: str = Field(default="all", description="'week', 'month', 'all' or 'custom'"),
    start: str | None = Field(default=None, description="First date of a custom period (YYYY-MM-DD)"),
    end: str | None = Field(default=None, description="Last date of a custom period (YYYY-MM-DD)"),
) -> dict[str, Any]:
    """List submitted days with their submissions and totals, newest first."""
    try:
        pay_period = ProfileSettingsStore().get_settings().pay_rules.pay_period
        days = JsonSubmissionStore().get_submitted_days(period, start=start, end=end, pay_period=pay_period)
        return {
            "days": [d.model_dump(mode="json") for d in days],
            "count": len(days),
            "total_minutes": sum(d.total_minutes for d in days),
        }

    except Exception as e:
        logger.error(f"Error listing submitted days: {e}")
        return {"error": str(e), "days": [], "count": 0}


def run_server():
    """Run the MCP server in stdio mode."""
    configure_logging()
    mcp.run(transport="stdio")
