"""Conversion options and environment-based configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CITATION_STYLES = ("standard", "acm", "ieee", "apa", "harvard", "chicago", "biblatex")
DEFAULT_STYLE = "standard"
ENV_PREFIX = "REFCONV_"


class ConversionOptions(BaseModel):
    """Immutable settings for one conversion run."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    citation_style: str = DEFAULT_STYLE
    escape_latex: bool = True
    use_string_definitions: bool = False
    use_biblatex_fields: bool = False
    enable_api_enhancement: bool = False
    include_abstract: bool = False
    include_keywords: bool = False
    include_notes: bool = False
    custom_fields: List[str] = Field(default_factory=list)
    api_timeout_ms: int = Field(10_000, ge=0)
    api_rate_limit_delay_ms: int = Field(1_000, ge=0)

    @field_validator("citation_style", mode="before")
    @classmethod
    def normalize_style(cls, value: Optional[str]) -> str:
        style = (value or "").strip().lower()
        return style if style in CITATION_STYLES else DEFAULT_STYLE

    @field_validator("custom_fields", mode="before")
    @classmethod
    def normalize_custom_fields(cls, value) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        names: List[str] = []
        for raw in value:
            name = str(raw).strip().lower()
            if name and name not in names:
                names.append(name)
        return names

    @property
    def api_timeout(self) -> float:
        """Provider call timeout in seconds."""
        return self.api_timeout_ms / 1000.0

    @property
    def api_rate_limit_delay(self) -> float:
        """Minimum interval between provider calls in seconds."""
        return self.api_rate_limit_delay_ms / 1000.0

    def describe(self) -> str:
        return (
            f"String definitions={self.use_string_definitions}, "
            f"BibLaTeX fields={self.use_biblatex_fields}, "
            f"LaTeX escaping={self.escape_latex}, "
            f"API enhancement={self.enable_api_enhancement}"
        )


@dataclass(frozen=True)
class ProviderSettings:
    """Identification sent to metadata providers."""

    user_agent: str = "reference-converter/0.1"
    crossref_mailto: str = ""
    semantic_scholar_api_key: str = ""


_BOOL_OPTIONS = {
    "ESCAPE_LATEX": "escape_latex",
    "USE_STRING_DEFINITIONS": "use_string_definitions",
    "USE_BIBLATEX_FIELDS": "use_biblatex_fields",
    "ENABLE_API_ENHANCEMENT": "enable_api_enhancement",
    "INCLUDE_ABSTRACT": "include_abstract",
    "INCLUDE_KEYWORDS": "include_keywords",
    "INCLUDE_NOTES": "include_notes",
}

_INT_OPTIONS = {
    "API_TIMEOUT_MS": "api_timeout_ms",
    "API_RATE_LIMIT_DELAY_MS": "api_rate_limit_delay_ms",
}


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _environment(env: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    if env is not None:
        return env
    load_dotenv()
    return os.environ


def load_options(env: Optional[Mapping[str, str]] = None, **overrides) -> ConversionOptions:
    """Build options from ``REFCONV_*`` variables, then apply explicit overrides."""

    source = _environment(env)
    values = {}
    style = source.get(f"{ENV_PREFIX}CITATION_STYLE")
    if style:
        values["citation_style"] = style
    for suffix, name in _BOOL_OPTIONS.items():
        raw = source.get(f"{ENV_PREFIX}{suffix}")
        if raw is not None:
            values[name] = _env_bool(raw)
    for suffix, name in _INT_OPTIONS.items():
        raw = source.get(f"{ENV_PREFIX}{suffix}")
        if raw:
            values[name] = int(raw)
    custom = source.get(f"{ENV_PREFIX}CUSTOM_FIELDS")
    if custom:
        values["custom_fields"] = custom
    values.update({key: value for key, value in overrides.items() if value is not None})
    return ConversionOptions(**values)


def load_provider_settings(env: Optional[Mapping[str, str]] = None) -> ProviderSettings:
    source = _environment(env)
    defaults = ProviderSettings()
    return ProviderSettings(
        user_agent=source.get(f"{ENV_PREFIX}USER_AGENT") or defaults.user_agent,
        crossref_mailto=source.get(f"{ENV_PREFIX}CROSSREF_MAILTO", ""),
        semantic_scholar_api_key=source.get(f"{ENV_PREFIX}SEMANTIC_SCHOLAR_API_KEY", ""),
    )


__all__ = [
    "CITATION_STYLES",
    "ConversionOptions",
    "ProviderSettings",
    "load_options",
    "load_provider_settings",
]
