"""
Advisory Gateway for FinSmart

The one boundary between the ledger and the generative model. Three
calls cross it: categorize a transaction, analyze overall financial
health, and answer a free-form question.

CRITICAL BOUNDARIES:

1. The gateway NEVER mutates the ledger. A suggested category is only
   a suggestion; the caller decides whether to record it.

2. The gateway NEVER raises to the caller. Every failure (network,
   timeout, unparseable output, missing key) is logged and absorbed
   into the documented fallback:
   - categorize -> None
   - analyze    -> FinancialHealthReport.fallback()
   - ask        -> "Sorry, I couldn't process your request."

3. Every call is bounded by asyncio.wait_for, so a hung request is
   cancelled rather than stalling the caller.
"""

import asyncio
import json
from collections.abc import Iterable
from typing import Any, Optional

import google.generativeai as genai
import structlog

from finsmart.config import GeminiSettings, get_settings
from finsmart.metrics.context import DEFAULT_ANALYSIS_WINDOW, analysis_summary
from finsmart.models.advisory import DebtStrategy, FinancialHealthReport
from finsmart.models.ledger import Budget, Category, Debt, Snapshot, Transaction

logger = structlog.get_logger(__name__)

ASK_FALLBACK = "Sorry, I couldn't process your request."
EMPTY_REPLY_FALLBACK = "I'm having trouble thinking right now. Try again later."


class AdvisoryGateway:
    """
    Async client for the advisory model.

    Pass `model` to substitute any object with an async
    `generate_content_async(prompt, generation_config=...)` method;
    otherwise a Gemini model is configured from GeminiSettings.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
    ):
        self._settings = settings or get_settings().gemini
        if model is None:
            model = self._configure_genai()
        self._model = model

    def _configure_genai(self) -> Any:
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            },
        )

    async def _generate(
        self,
        prompt: str,
        generation_config: Optional[dict] = None,
    ) -> str:
        """
        Send one prompt and return the stripped reply text.

        Raises whatever the model raises, or asyncio.TimeoutError.
        """
        kwargs = {}
        if generation_config:
            kwargs["generation_config"] = generation_config

        response = await asyncio.wait_for(
            self._model.generate_content_async(prompt, **kwargs),
            timeout=self._settings.timeout_seconds,
        )
        return (response.text or "").strip()

    # -------------------------------------------------------------------------
    # Categorization
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_category(text: str) -> Category:
        """Map a model reply onto a Category; anything unrecognized is Other."""
        cleaned = text.strip().strip("\"'`.").strip()
        for category in Category:
            if cleaned.lower() == category.value.lower():
                return category
        return Category.OTHER

    async def categorize(self, description: str, amount: Any) -> Optional[Category]:
        """
        Suggest a category for a transaction.

        Returns None if the model could not be reached.
        """
        categories = ", ".join(c.value for c in Category)
        prompt = f"""Categorize this financial transaction: "{description}" with amount {amount}.
Return ONLY one of the following exact strings: {categories}.
If uncertain, choose Other."""

        try:
            text = await self._generate(prompt)
        except Exception as e:
            logger.warning("advisor_categorize_failed", error=str(e), error_type=type(e).__name__)
            return None

        return self._parse_category(text)

    # -------------------------------------------------------------------------
    # Health analysis
    # -------------------------------------------------------------------------

    @staticmethod
    def _extract_json(text: str) -> dict:
        """Pull the outermost JSON object out of a reply that may be fenced."""
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            raise ValueError("No JSON object in advisor reply")
        return json.loads(text[start:end])

    async def analyze(
        self,
        transactions: Iterable[Transaction],
        debts: Iterable[Debt],
        budgets: Iterable[Budget],
        window: int = DEFAULT_ANALYSIS_WINDOW,
    ) -> FinancialHealthReport:
        """
        Produce a financial health report.

        Only the `window` most recent transactions are sent. On any
        failure the static fallback report is returned.
        """
        summary = analysis_summary(
            Snapshot(
                transactions=tuple(transactions),
                debts=tuple(debts),
                budgets=tuple(budgets),
            ),
            window=window,
        )
        strategies = ", ".join(f'"{s.value}"' for s in DebtStrategy)

        prompt = f"""Act as a senior financial advisor. Analyze this user's financial data JSON.
Provide a health score, summary, recommendations, and a debt strategy.

Respond with ONLY a JSON object with these keys:
- "score": number from 0 to 100
- "summary": brief executive summary of financial status
- "recommendations": list of 3 specific actionable recommendations
- "debtStrategy": one of {strategies}
- "debtStrategyReasoning": why this strategy was chosen

Data: {json.dumps(summary)}"""

        try:
            text = await self._generate(
                prompt,
                generation_config={"response_mime_type": "application/json"},
            )
            if not text:
                raise ValueError("Empty response from advisor")
            return FinancialHealthReport.model_validate(self._extract_json(text))
        except Exception as e:
            logger.warning("advisor_analysis_failed", error=str(e), error_type=type(e).__name__)
            return FinancialHealthReport.fallback()

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    async def ask(self, question: str, context_summary: Any) -> str:
        """
        Answer a free-form question given a context summary.

        The reply is markdown. Never raises.
        """
        prompt = f"""You are FinSmart, a helpful, empathetic, and strict financial advisor.
User Context: {json.dumps(context_summary, default=str)}
User Question: "{question}"
Answer concisely in markdown format."""

        try:
            text = await self._generate(prompt)
        except Exception as e:
            logger.warning("advisor_chat_failed", error=str(e), error_type=type(e).__name__)
            return ASK_FALLBACK

        return text or EMPTY_REPLY_FALLBACK
