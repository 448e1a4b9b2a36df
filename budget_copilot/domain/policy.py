"""Engine thresholds grouped per component.

Every tunable number used by the projectors, the risk table and the command
generator lives here. ``Settings.engine_policy()`` builds an ``EnginePolicy``
from environment configuration; the defaults below are the production values.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RunwayPolicy:
    """Cash runway projection parameters"""

    horizon_days: int = 30
    lookback_days: int = 30
    safety_buffer_cents: int = 5_000  # $50 kept aside before anything is "safe"
    default_income_interval_days: int = 14
    rolling_window_days: int = 7


@dataclass(frozen=True)
class DebtPolicy:
    """Debt payoff simulation and danger score parameters"""

    max_months: int = 600  # 50 years
    fallback_minimum_percent: float = 2.0
    apr_benchmark_percent: float = 20.0
    ratio_benchmark_months: float = 120.0
    payoff_benchmark_months: float = 60.0
    apr_weight: float = 0.4
    ratio_weight: float = 0.3
    payoff_weight: float = 0.3


@dataclass(frozen=True)
class RiskThresholds:
    """Ordinal decision table cut-offs"""

    critical_days: int = 1
    danger_days: int = 3
    warning_days: int = 7
    caution_days: int = 14
    caution_obligation_ratio: float = 0.5
    high_danger_score: int = 70


@dataclass(frozen=True)
class DecisionPolicy:
    """Decision lifecycle and command text parameters"""

    validity_hours: int = 24
    bill_warning_days: int = 5
    debt_warning_score: int = 60
    max_warnings: int = 2


@dataclass(frozen=True)
class EnginePolicy:
    runway: RunwayPolicy = field(default_factory=RunwayPolicy)
    debt: DebtPolicy = field(default_factory=DebtPolicy)
    risk: RiskThresholds = field(default_factory=RiskThresholds)
    decision: DecisionPolicy = field(default_factory=DecisionPolicy)
    goal_on_track_tolerance: float = 0.9


DEFAULT_POLICY = EnginePolicy()
