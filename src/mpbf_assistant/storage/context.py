"""KPI snapshot used to ground intent classification and performance answers."""

from __future__ import annotations

import logging

import aiosqlite
from pydantic import BaseModel

from mpbf_assistant.storage.database import FactoryDatabase

logger = logging.getLogger(__name__)

NO_CONTEXT = "No KPI snapshot available."


class DashboardStats(BaseModel):
    active_orders: int = 0
    production_rate: float = 0.0
    quality_score: float = 0.0
    waste_percentage: float = 0.0
    active_machines: int = 0
    maintenance_machines: int = 0


def _percent(part: float | None, whole: float | None) -> float:
    if not whole:
        return 0.0
    return round(100.0 * (part or 0.0) / whole, 1)


class KpiContext:
    def __init__(self, db: FactoryDatabase) -> None:
        self._db = db

    async def snapshot(self) -> DashboardStats:
        active_orders = await self._db.scalar(
            "SELECT COUNT(*) FROM orders WHERE status IN ('waiting', 'in_production')"
        )
        production = await self._db.fetch_one(
            "SELECT SUM(produced_quantity_kg) AS produced, SUM(quantity_kg) AS required "
            "FROM production_orders WHERE status IN ('pending', 'active')"
        )
        checks = await self._db.fetch_one(
            "SELECT SUM(CASE WHEN result = 'pass' THEN 1 ELSE 0 END) AS passed, "
            "COUNT(*) AS total FROM quality_checks"
        )
        wasted = await self._db.scalar("SELECT SUM(quantity_wasted) FROM waste")
        rolled = await self._db.scalar("SELECT SUM(weight_kg) FROM rolls")
        machines = await self._db.fetch_one(
            "SELECT SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END) AS active, "
            "SUM(CASE WHEN status = 'maintenance' THEN 1 ELSE 0 END) AS maintenance "
            "FROM machines"
        )

        production = production or {}
        checks = checks or {}
        machines = machines or {}
        return DashboardStats(
            active_orders=active_orders or 0,
            production_rate=_percent(production.get("produced"), production.get("required")),
            quality_score=_percent(checks.get("passed"), checks.get("total")),
            waste_percentage=_percent(wasted, rolled),
            active_machines=machines.get("active") or 0,
            maintenance_machines=machines.get("maintenance") or 0,
        )

    async def format_context(self) -> str:
        try:
            stats = await self.snapshot()
        except (aiosqlite.Error, RuntimeError) as exc:
            logger.warning("KPI snapshot unavailable: %s", exc)
            return NO_CONTEXT
        return (
            "Current factory KPIs:\n"
            f"- Active orders: {stats.active_orders}\n"
            f"- Production rate: {stats.production_rate}%\n"
            f"- Quality score: {stats.quality_score}%\n"
            f"- Waste percentage: {stats.waste_percentage}%\n"
            f"- Active machines: {stats.active_machines}\n"
            f"- Machines in maintenance: {stats.maintenance_machines}"
        )
