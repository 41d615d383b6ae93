"""
Financial analysis through Gemini.

The model only sees aggregates computed here (totals, expense per category,
project names), never the raw ledger. Every failure is turned into a
user-facing message; nothing in this module raises to its caller.
"""

import json
from typing import Optional, Sequence

import google.generativeai as genai
import structlog

from analysis import category_breakdown, txs_to_df
from errors import AnalysisError
from ledger import compute_totals
from models import Project, Transaction, TransactionType
from settings import GeminiSettings, get_settings

log = structlog.get_logger(__name__)

MISSING_KEY_MESSAGE = "Error: API key not configured."
EMPTY_RESPONSE_MESSAGE = "Could not generate the analysis."
FAILURE_MESSAGE = "An error occurred while consulting Gemini. Please try again later."


def build_prompt(transactions: Sequence[Transaction], projects: Sequence[Project]) -> str:
    totals = compute_totals(transactions)
    expenses = category_breakdown(txs_to_df(transactions), TransactionType.EXPENSE)
    return f"""Act as an expert financial consultant for a wood frame house building company.
Analyze the following summarized data:

Total income: ${totals.total_income:,.2f}
Total expenses: ${totals.total_expense:,.2f}
Balance: ${totals.balance:,.2f}

Expenses by category:
{json.dumps(expenses, indent=2, ensure_ascii=False)}

Active projects: {', '.join(p.name for p in projects)}

Please provide:
1. A short diagnosis of the company's financial health.
2. Whether any expense looks out of proportion for wood frame construction
   (for example lumber versus labor spending).
3. Two concrete recommendations to optimize costs or cash flow.

Answer in Markdown, concise and professional."""


class FinanceAnalyst:
    """Thin wrapper around a configured Gemini model."""

    def __init__(self, settings: GeminiSettings):
        self._settings = settings
        try:
            genai.configure(api_key=settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=settings.model_name,
                generation_config={
                    "temperature": settings.temperature,
                    "max_output_tokens": settings.max_output_tokens,
                }
            )
        except Exception as e:
            raise AnalysisError(f"Gemini client setup failed: {e}") from e

    async def report(self, prompt: str) -> str:
        try:
            response = await self._model.generate_content_async(prompt)
            return (response.text or "").strip()
        except Exception as e:
            raise AnalysisError(f"Gemini call failed: {e}") from e


async def analyze_finances(
    transactions: Sequence[Transaction],
    projects: Sequence[Project],
    settings: Optional[GeminiSettings] = None,
) -> str:
    """Return a Markdown report, or a literal error message on any failure."""
    settings = settings or get_settings().gemini
    if not settings.api_key:
        log.warning("analysis_skipped", reason="missing_api_key")
        return MISSING_KEY_MESSAGE

    prompt = build_prompt(transactions, projects)
    try:
        text = await FinanceAnalyst(settings).report(prompt)
    except AnalysisError as e:
        log.error("analysis_failed", error=str(e), model=settings.model_name)
        return FAILURE_MESSAGE

    if not text:
        return EMPTY_RESPONSE_MESSAGE
    log.info("analysis_completed", chars=len(text), transactions=len(transactions))
    return text
