"""
dealer_analytics/schemas/kpi.py

KPI snapshot contract returned by the analytics server.

Every numeric metric defaults to zero so that partially populated months
(for example a month with no closed deals yet) still validate.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

_SNAPSHOT_CONFIG = ConfigDict(frozen=True, extra="ignore")


class SalespersonPerformance(BaseModel):
    """
    One ranked salesperson row.

    ``avg_gross`` is always present on the wire; the deal/total/commission
    breakdowns are sent by newer servers only.
    """

    model_config = _SNAPSHOT_CONFIG

    name: str
    units: int = Field(0, ge=0)
    avg_gross: float = 0.0
    avg_deal_gross: float | None = None
    avg_total_gross: float | None = None
    avg_commission: float | None = None


class TopModel(BaseModel):
    model_config = _SNAPSHOT_CONFIG

    model: str
    units: int = Field(0, ge=0)


class PaymentMix(BaseModel):
    """
    Lease / finance / cash share of deals, each a fraction in [0, 1].
    """

    model_config = _SNAPSHOT_CONFIG

    lease: float = 0.0
    finance: float = 0.0
    cash: float = 0.0


class KpiSnapshot(BaseModel):
    """
    Aggregated dealership metrics for one reporting month.
    """

    model_config = _SNAPSHOT_CONFIG

    month: str = ""
    total_units_sold: int = Field(0, ge=0)
    avg_units_per_salesperson: float = 0.0
    avg_gross_per_unit: float = 0.0
    avg_fi_per_unit: float = 0.0
    avg_commission_per_unit: float = 0.0
    fi_penetration_rate: float = 0.0
    new_used_ratio: float = 0.0
    lease_finance_cash_ratio: PaymentMix = Field(default_factory=PaymentMix)
    front_back_ratio: float = 0.0
    commission_as_pct_of_gross: float = 0.0
    fi_as_pct_of_total_gross: float = 0.0
    top_salespeople: tuple[SalespersonPerformance, ...] = ()
    units_by_vehicle_type: dict[str, int] = Field(default_factory=dict)
    top_models: tuple[TopModel, ...] = ()
    insights: str = ""
