"""DORA metrics: lead time attribution, deployment frequency, CFR and MTTR."""

from src.modules.metrics.exceptions import InvalidDateRangeError, MetricsError
from src.modules.metrics.lead_time import LeadTimeCalculator
from src.modules.metrics.models import (
    ChangeFailureRate,
    ChangeLeadTime,
    DeploymentFrequency,
    LeadTimeRecord,
    MeanTimeToRecovery,
    dora_level,
)
from src.modules.metrics.periods import PeriodType, day_bounds, iter_periods
from src.modules.metrics.repository import ChangeLeadTimeRepository
from src.modules.metrics.service import MetricsService

__all__ = [
    "ChangeFailureRate",
    "ChangeLeadTime",
    "ChangeLeadTimeRepository",
    "DeploymentFrequency",
    "InvalidDateRangeError",
    "LeadTimeCalculator",
    "LeadTimeRecord",
    "MeanTimeToRecovery",
    "MetricsError",
    "MetricsService",
    "PeriodType",
    "day_bounds",
    "dora_level",
    "iter_periods",
]
