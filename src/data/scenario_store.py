"""Persistence of explicitly saved scenarios (overrides + resulting KPIs)."""

import logging
import uuid
from dataclasses import fields
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.db import SavedScenarioRecord
from src.models.scenario import ComputedKPIs, MaintenanceMode, ScenarioOverrides

logger = logging.getLogger(__name__)


def _encode(value: object) -> object:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, MaintenanceMode):
        return value.value
    return value


def overrides_to_dict(overrides: ScenarioOverrides) -> dict:
    """Sparse JSON form: only fields that were set."""
    data: dict = {}
    for f in fields(overrides):
        value = getattr(overrides, f.name)
        if f.name == "rooms":
            if value:
                data["rooms"] = {k: _encode(v) for k, v in value.items()}
        elif value is not None:
            data[f.name] = _encode(value)
    return data


def _decode_number(value: object) -> object:
    if isinstance(value, str):
        try:
            return Decimal(value)
        except ArithmeticError:
            return None
    return value


def overrides_from_dict(data: dict) -> ScenarioOverrides:
    """Inverse of overrides_to_dict. Unknown keys are ignored."""
    known = {f.name for f in fields(ScenarioOverrides)}
    values: dict = {}
    for key, value in (data or {}).items():
        if key not in known:
            continue
        if key == "rooms":
            values["rooms"] = {k: _decode_number(v) for k, v in (value or {}).items()}
        elif key == "maintenance_mode":
            values[key] = value
        else:
            values[key] = _decode_number(value)
    return ScenarioOverrides(**values)


def kpis_to_dict(kpis: ComputedKPIs) -> dict[str, str]:
    return {name: str(value) for name, value in kpis.as_dict().items()}


async def save_scenario(
    session: AsyncSession,
    run_id: str,
    overrides: ScenarioOverrides,
    kpis: ComputedKPIs,
    name: str | None = None,
) -> SavedScenarioRecord:
    record = SavedScenarioRecord(
        id=uuid.uuid4(),
        run_id=uuid.UUID(str(run_id)),
        name=name or "",
        overrides=overrides_to_dict(overrides),
        kpis=kpis_to_dict(kpis),
    )
    session.add(record)
    await session.commit()
    logger.info("Saved scenario %s for run %s", record.id, run_id)
    return record


async def list_scenarios(session: AsyncSession, run_id: str) -> list[SavedScenarioRecord]:
    result = await session.execute(
        select(SavedScenarioRecord)
        .where(SavedScenarioRecord.run_id == uuid.UUID(str(run_id)))
        .order_by(SavedScenarioRecord.created_at.desc())
    )
    return list(result.scalars().all())
