"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from budget_copilot.domain.policy import (
    DebtPolicy,
    DecisionPolicy,
    EnginePolicy,
    RiskThresholds,
    RunwayPolicy,
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./budget_copilot.db"

    # Service
    service_name: str = "budget-copilot"
    log_level: str = "INFO"

    # Decision lifecycle
    decision_validity_hours: int = DecisionPolicy.validity_hours
    compute_lock_timeout_seconds: float = 5.0
    bill_warning_days: int = DecisionPolicy.bill_warning_days
    debt_warning_score: int = DecisionPolicy.debt_warning_score

    # Cash runway
    runway_horizon_days: int = RunwayPolicy.horizon_days
    runway_lookback_days: int = RunwayPolicy.lookback_days
    safety_buffer_cents: int = RunwayPolicy.safety_buffer_cents
    default_income_interval_days: int = RunwayPolicy.default_income_interval_days

    # Risk table
    risk_critical_days: int = RiskThresholds.critical_days
    risk_danger_days: int = RiskThresholds.danger_days
    risk_warning_days: int = RiskThresholds.warning_days
    risk_caution_days: int = RiskThresholds.caution_days
    risk_caution_obligation_ratio: float = RiskThresholds.caution_obligation_ratio
    risk_high_danger_score: int = RiskThresholds.high_danger_score

    # Debt projections
    payoff_max_months: int = DebtPolicy.max_months
    fallback_minimum_percent: float = DebtPolicy.fallback_minimum_percent
    danger_apr_benchmark_percent: float = DebtPolicy.apr_benchmark_percent
    danger_ratio_benchmark_months: float = DebtPolicy.ratio_benchmark_months
    danger_payoff_benchmark_months: float = DebtPolicy.payoff_benchmark_months

    # Goals
    goal_on_track_tolerance: float = EnginePolicy.goal_on_track_tolerance

    def engine_policy(self) -> EnginePolicy:
        """Build the immutable policy handed to the domain layer"""
        return EnginePolicy(
            runway=RunwayPolicy(
                horizon_days=self.runway_horizon_days,
                lookback_days=self.runway_lookback_days,
                safety_buffer_cents=self.safety_buffer_cents,
                default_income_interval_days=self.default_income_interval_days,
            ),
            debt=DebtPolicy(
                max_months=self.payoff_max_months,
                fallback_minimum_percent=self.fallback_minimum_percent,
                apr_benchmark_percent=self.danger_apr_benchmark_percent,
                ratio_benchmark_months=self.danger_ratio_benchmark_months,
                payoff_benchmark_months=self.danger_payoff_benchmark_months,
            ),
            risk=RiskThresholds(
                critical_days=self.risk_critical_days,
                danger_days=self.risk_danger_days,
                warning_days=self.risk_warning_days,
                caution_days=self.risk_caution_days,
                caution_obligation_ratio=self.risk_caution_obligation_ratio,
                high_danger_score=self.risk_high_danger_score,
            ),
            decision=DecisionPolicy(
                validity_hours=self.decision_validity_hours,
                bill_warning_days=self.bill_warning_days,
                debt_warning_score=self.debt_warning_score,
            ),
            goal_on_track_tolerance=self.goal_on_track_tolerance,
        )


settings = Settings()
