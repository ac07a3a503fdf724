"""Configuration Module

Explicit settings object passed into every client constructor. Only
``Settings.from_env`` touches process state; everything else receives a
``Settings`` instance, so tests never need to mutate the environment.

Environment variables:
  OMNIVORE_API_KEY: Required API key for Omnivore (no default)
  OMNIVORE_URL: GraphQL endpoint (default: Omnivore production)
  OPENAI_API_KEY: API key for OpenAI (the SDK also reads it directly)
  OPENAI_MODEL: Chat model (default: gpt-4o-mini)
  OPENAI_SETTINGS: JSON blob of chat-completion parameters
  OPENAI_PROMPT: Instruction for the final (repetition) stage
  ACTIONS_URL / REPETITION_URL: Next-stage webhook URLs
  BEST_OF_N: Candidate completions per annotation (default: 3)
  MAX_FETCH_RETRIES: Extra article fetch attempts (default: 3)
  HTTP_TIMEOUT: Seconds before an outbound HTTP call gives up (default: 60)
"""

import json
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError
from .prompts import REPETITION_PROMPT

OMNIVORE_URL = "https://api-prod.omnivore.app/api/graphql"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.5
DEFAULT_ACTIONS_URL = "https://ai-summary-theta.vercel.app/api/actions"
DEFAULT_REPETITION_URL = "https://ai-summary-theta.vercel.app/api/repetition"


class Settings(BaseModel):
    omnivore_api_key: str = ""
    omnivore_url: str = OMNIVORE_URL
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_MODEL
    openai_settings: Optional[str] = None
    openai_prompt: str = REPETITION_PROMPT
    actions_url: str = DEFAULT_ACTIONS_URL
    repetition_url: str = DEFAULT_REPETITION_URL
    candidates: int = Field(default=3, ge=1)
    max_fetch_retries: int = Field(default=3, ge=0)
    http_timeout: float = 60.0

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from the process environment.

        A ``.env`` file is loaded first when present; variables already
        set in the environment win.
        """
        load_dotenv(dotenv_path)
        values: Dict[str, Any] = {
            "omnivore_api_key": (os.getenv("OMNIVORE_API_KEY") or "").strip(),
            "omnivore_url": os.getenv("OMNIVORE_URL", OMNIVORE_URL),
            "openai_api_key": os.getenv("OPENAI_API_KEY") or None,
            "openai_model": os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
            "openai_settings": os.getenv("OPENAI_SETTINGS") or None,
            "openai_prompt": os.getenv("OPENAI_PROMPT") or REPETITION_PROMPT,
            "actions_url": os.getenv("ACTIONS_URL", DEFAULT_ACTIONS_URL),
            "repetition_url": os.getenv("REPETITION_URL", DEFAULT_REPETITION_URL),
            "candidates": int(os.getenv("BEST_OF_N", "3")),
            "max_fetch_retries": int(os.getenv("MAX_FETCH_RETRIES", "3")),
            "http_timeout": float(os.getenv("HTTP_TIMEOUT", "60")),
        }
        return cls(**values)

    def model_profile(self) -> Dict[str, Any]:
        """Chat-completion parameters (model name plus sampling settings).

        Raises:
            ConfigurationError: If ``openai_settings`` is not a JSON object
        """
        if not self.openai_settings:
            return {"model": self.openai_model, "temperature": DEFAULT_TEMPERATURE}
        try:
            profile = json.loads(self.openai_settings)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"OPENAI_SETTINGS is not valid JSON: {e}") from e
        if not isinstance(profile, dict):
            raise ConfigurationError("OPENAI_SETTINGS must be a JSON object")
        profile.setdefault("model", self.openai_model)
        return profile
