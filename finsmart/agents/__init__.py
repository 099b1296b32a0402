"""Advisory agents package."""

from finsmart.agents.advisor import (
    ASK_FALLBACK,
    EMPTY_REPLY_FALLBACK,
    AdvisoryGateway,
)

__all__ = [
    "ASK_FALLBACK",
    "EMPTY_REPLY_FALLBACK",
    "AdvisoryGateway",
]
