# =============================================================================
# HELPDESK API - AI ANALYZER (Google Gemini)
# =============================================================================
# Ticket analysis (sentiment, suggested priority/category, summary) and
# reply suggestions. Neither call raises: failures return defaults.
# =============================================================================

import json
import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional

import google.generativeai as genai

from ..config import config
from .tickets.constants import Sentiment, TicketPriority, TicketCategory

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Unable to generate AI summary"

_CODE_FENCE = re.compile(r"```(?:json)?\s*|```")


@dataclass
class AIAnalysis:
    """Result of a ticket analysis. fallback=True when these are the defaults."""
    sentiment: str = Sentiment.NEUTRAL
    suggested_priority: str = TicketPriority.MEDIUM
    suggested_category: str = TicketCategory.GENERAL
    summary: str = FALLBACK_SUMMARY
    fallback: bool = True

    def to_columns(self) -> Dict[str, str]:
        """Ticket columns written by the enrichment job."""
        return {
            "ai_sentiment": self.sentiment,
            "ai_suggested_priority": self.suggested_priority,
            "ai_suggested_category": self.suggested_category,
            "ai_summary": self.summary,
        }


def _analysis_prompt(title: str, description: str) -> str:
    return f"""Analyze this customer support ticket and provide a JSON response.

Ticket Title: {title}
Ticket Description: {description}

Respond with ONLY valid JSON in this exact format:
{{
  "sentiment": "positive" | "neutral" | "negative",
  "priority": "low" | "medium" | "high" | "urgent",
  "category": "technical" | "billing" | "general" | "feature_request" | "bug_report",
  "summary": "A brief 1-2 sentence summary of the ticket"
}}

Guidelines:
- sentiment: based on customer tone and urgency
- priority: urgent (system down/critical), high (major issue), medium (standard), low (minor/question)
- category: technical (bugs/errors), billing (payments/invoices), feature_request, bug_report, general (other)
- summary: concise summary for quick agent review"""


def _suggestion_prompt(title: str, description: str, history: str) -> str:
    previous = f"Previous messages:\n{history}\n" if history else ""
    return f"""You are a helpful customer support agent. Generate a professional response suggestion.

Ticket: {title}
Issue: {description}
{previous}
Provide a helpful, empathetic response that addresses the customer's concern. Keep it concise and professional."""


def parse_analysis(text: str) -> AIAnalysis:
    """
    Parse the model's JSON answer.

    Raises:
        ValueError: invalid JSON or values outside the allowed sets
    """
    data = json.loads(_CODE_FENCE.sub("", text or "").strip())
    if not isinstance(data, dict):
        raise ValueError("AI response is not a JSON object")

    sentiment = data.get("sentiment")
    priority = data.get("priority")
    category = data.get("category")
    summary = (data.get("summary") or "").strip()

    if sentiment not in Sentiment.ALL:
        raise ValueError(f"Invalid sentiment: {sentiment}")
    if priority not in TicketPriority.ALL:
        raise ValueError(f"Invalid priority: {priority}")
    if category not in TicketCategory.ALL:
        raise ValueError(f"Invalid category: {category}")
    if not summary:
        raise ValueError("Empty summary")

    return AIAnalysis(
        sentiment=sentiment,
        suggested_priority=priority,
        suggested_category=category,
        summary=summary,
        fallback=False,
    )


class GeminiAnalyzer:
    """
    AI collaborator backed by Google Gemini.

    Usage:
        analyzer = GeminiAnalyzer()
        analysis = analyzer.analyze("Login broken", "Cannot sign in")
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key if api_key is not None else config.GEMINI_API_KEY
        self.model_name = model or config.AI_MODEL
        self._model = None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _get_model(self):
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
            logger.info(f"Gemini model initialized: {self.model_name}")
        return self._model

    def analyze(self, title: str, description: str) -> AIAnalysis:
        """Analyze a ticket; returns the defaults (fallback=True) on any failure."""
        if not self.enabled:
            logger.warning("GEMINI_API_KEY not set, AI analysis skipped")
            return AIAnalysis()

        try:
            response = self._get_model().generate_content(
                _analysis_prompt(title, description),
                generation_config=genai.GenerationConfig(
                    temperature=0.2,
                    max_output_tokens=512,
                    response_mime_type="application/json",
                ),
            )
            return parse_analysis(response.text)
        except Exception as e:
            logger.error(f"AI analysis failed: {e}")
            return AIAnalysis()

    def suggest_response(self, title: str, description: str, history: str = "") -> str:
        """Draft a reply for an agent; returns "" on any failure."""
        if not self.enabled:
            logger.warning("GEMINI_API_KEY not set, response suggestion skipped")
            return ""

        try:
            response = self._get_model().generate_content(
                _suggestion_prompt(title, description, history),
                generation_config=genai.GenerationConfig(
                    temperature=0.7,
                    max_output_tokens=1024,
                ),
            )
            return (response.text or "").strip()
        except Exception as e:
            logger.error(f"AI response suggestion failed: {e}")
            return ""
