# -*- coding: utf-8 -*-
"""Domain exceptions raised by services and mapped to HTTP errors at the API edge."""

from __future__ import annotations


class FitcoachError(Exception):
    """Base class for fitcoach errors."""


class ConfigurationError(FitcoachError):
    """A required setting (API key, backend URL) is missing."""


class BackendNotConfigured(ConfigurationError):
    """Raised when SUPABASE_URL / SUPABASE_KEY are missing."""


class PlanGenerationError(FitcoachError):
    """The LLM call failed or returned no usable JSON."""


class PlanGenerationTimeout(PlanGenerationError):
    def __init__(self) -> None:
        super().__init__(
            "The request timed out. The AI service took too long to respond. Please try again."
        )


class FoodSourceError(FitcoachError):
    """A third-party food database could not be queried."""
