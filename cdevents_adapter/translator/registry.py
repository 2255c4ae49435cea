"""Immutable routing-key to translator mapping.

The registry is built once at startup and only read afterwards, so it can
be shared between tasks without locking.
"""

from __future__ import annotations

import types
import typing as typ

from .gitea import (
    GiteaCreateTranslator,
    GiteaDeleteTranslator,
    GiteaPullRequestTranslator,
    GiteaPushTranslator,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .protocol import Translator


class RegistryError(ValueError):
    """Raised when registry entries are inconsistent."""

    @classmethod
    def duplicate_key(cls, key: str) -> RegistryError:
        """Return an error for a routing key registered twice."""
        return cls(f"translator already registered for routing key: {key}")

    @classmethod
    def empty_key(cls) -> RegistryError:
        """Return an error for a blank routing key."""
        return cls("routing key must not be empty")


class TranslatorRegistry:
    """Read-only lookup of translators by exact routing key.

    Examples
    --------
    >>> registry = TranslatorRegistry.from_entries(
    ...     [("gitea.push", GiteaPushTranslator())]
    ... )
    >>> registry.lookup("gitea.push") is not None
    True
    >>> registry.lookup("gitea.*") is None
    True

    """

    __slots__ = ("_translators",)

    def __init__(self, translators: cabc.Mapping[str, Translator]) -> None:
        """Wrap a snapshot of ``translators``; later changes to it are not seen."""
        self._translators: cabc.Mapping[str, Translator] = types.MappingProxyType(
            dict(translators)
        )

    @classmethod
    def from_entries(
        cls, entries: cabc.Iterable[tuple[str, Translator]]
    ) -> TranslatorRegistry:
        """Build a registry from ``(routing key, translator)`` pairs.

        Raises
        ------
        RegistryError
            If a key is empty or appears more than once.

        """
        translators: dict[str, Translator] = {}
        for key, translator in entries:
            if not key:
                raise RegistryError.empty_key()
            if key in translators:
                raise RegistryError.duplicate_key(key)
            translators[key] = translator
        return cls(translators)

    def lookup(self, routing_key: str) -> Translator | None:
        """Return the translator registered for ``routing_key``, if any."""
        return self._translators.get(routing_key)

    def keys(self) -> tuple[str, ...]:
        """Return the registered routing keys in registration order."""
        return tuple(self._translators)

    def __contains__(self, routing_key: object) -> bool:
        """Return whether a translator is registered for ``routing_key``."""
        return routing_key in self._translators

    def __len__(self) -> int:
        """Return the number of registered translators."""
        return len(self._translators)


def default_registry() -> TranslatorRegistry:
    """Return the registry of the built-in Gitea translators."""
    return TranslatorRegistry.from_entries(
        [
            ("gitea.push", GiteaPushTranslator()),
            ("gitea.pull_request", GiteaPullRequestTranslator()),
            ("gitea.create", GiteaCreateTranslator()),
            ("gitea.delete", GiteaDeleteTranslator()),
        ]
    )
