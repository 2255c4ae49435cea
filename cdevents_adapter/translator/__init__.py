"""Webhook payload translators and their registry."""

from __future__ import annotations

from .errors import TranslationError, TranslationReason
from .gitea import (
    GiteaCreateTranslator,
    GiteaDeleteTranslator,
    GiteaPullRequestTranslator,
    GiteaPushTranslator,
)
from .protocol import Translator
from .registry import RegistryError, TranslatorRegistry, default_registry
from .sources import RepositorySources, repository_sources

__all__ = [
    "GiteaCreateTranslator",
    "GiteaDeleteTranslator",
    "GiteaPullRequestTranslator",
    "GiteaPushTranslator",
    "RegistryError",
    "RepositorySources",
    "TranslationError",
    "TranslationReason",
    "Translator",
    "TranslatorRegistry",
    "default_registry",
    "repository_sources",
]
