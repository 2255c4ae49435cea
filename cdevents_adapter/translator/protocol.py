"""Translator protocol for webhook payload kinds."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from cdevents_adapter.events import CDEvent


@typ.runtime_checkable
class Translator(typ.Protocol):
    """Turns the raw bytes of one webhook payload kind into a CDEvent.

    Each payload kind (``gitea.push``, ``gitea.pull_request``, ...) has its
    own implementation, registered under a routing key in a
    :class:`~cdevents_adapter.translator.registry.TranslatorRegistry`.
    Adding a payload kind means adding an implementation and a registry
    entry; the message processor does not change.

    Examples
    --------
    >>> from cdevents_adapter.translator import GiteaPushTranslator, Translator
    >>> isinstance(GiteaPushTranslator(), Translator)
    True

    """

    def translate(self, data: bytes) -> CDEvent:
        """Translate one payload.

        Parameters
        ----------
        data
            The webhook body exactly as the ingress received it.

        Returns
        -------
        CDEvent
            Exactly one event, with the raw payload attached as custom data.

        Raises
        ------
        TranslationError
            If the payload does not decode, selects no supported variant,
            or describes a change not worth an event (such as a push
            without new commits).

        """
        ...
