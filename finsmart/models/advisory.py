"""
Advisory Models

Structured shapes exchanged with the advisory service. The gateway
parses model output into these and substitutes the documented
fallback whenever the service fails.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DebtStrategy(str, Enum):
    """Debt payoff strategies the advisor may recommend."""
    SNOWBALL = "Snowball"    # smallest balance first
    AVALANCHE = "Avalanche"  # highest interest first
    HYBRID = "Hybrid"


FALLBACK_SUMMARY = (
    "Unable to generate AI report at this time. "
    "Please check your connection or API key."
)

FALLBACK_RECOMMENDATIONS = (
    "Track your expenses daily.",
    "Review your debts.",
    "Build an emergency fund.",
)

FALLBACK_STRATEGY_REASONING = "Mathematically optimal for reducing interest payments."


class FinancialHealthReport(BaseModel):
    """
    Health report produced by the advisor.

    Accepts the camelCase keys the service returns (debtStrategy,
    debtStrategyReasoning) as well as snake_case.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    score: float = Field(
        ...,
        ge=0,
        le=100,
        description="Financial health score from 0 to 100",
    )
    summary: str = Field(
        ...,
        description="Brief executive summary of financial status",
    )
    recommendations: list[str] = Field(
        default_factory=list,
        description="Specific actionable recommendations",
    )
    debt_strategy: DebtStrategy = Field(
        ...,
        description="Recommended debt payoff strategy",
    )
    debt_strategy_reasoning: str = Field(
        ...,
        description="Why this strategy was chosen",
    )
    is_fallback: bool = Field(
        default=False,
        exclude=True,
        description="True when this is the static report used after a failure",
    )

    @classmethod
    def fallback(cls) -> "FinancialHealthReport":
        """The static report substituted when the advisor is unavailable."""
        return cls(
            score=50,
            summary=FALLBACK_SUMMARY,
            recommendations=list(FALLBACK_RECOMMENDATIONS),
            debt_strategy=DebtStrategy.AVALANCHE,
            debt_strategy_reasoning=FALLBACK_STRATEGY_REASONING,
            is_fallback=True,
        )
