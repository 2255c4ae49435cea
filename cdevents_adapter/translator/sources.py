"""Derivation of event source attributes from a repository URL.

Every translator goes through :func:`repository_sources` so ``source``,
``subject.source`` and the repository id of an event always agree with
each other.
"""

from __future__ import annotations

import dataclasses
import urllib.parse

from .errors import TranslationError


@dataclasses.dataclass(frozen=True, slots=True)
class RepositorySources:
    """Source attributes shared by every event about one repository.

    Attributes
    ----------
    source
        Host of the repository URL, e.g. ``git.example.com``.
    subject_source
        Host joined with the repository path, e.g.
        ``git.example.com/yoloco/project1``.
    repository_id
        Full repository name, e.g. ``yoloco/project1``.

    """

    source: str
    subject_source: str
    repository_id: str


def _join_host_path(host: str, path: str) -> str:
    segments = [segment for segment in path.split("/") if segment]
    return "/".join([host, *segments])


def repository_sources(html_url: str, full_name: str) -> RepositorySources:
    """Derive event source attributes from a repository's canonical URL.

    Parameters
    ----------
    html_url
        Browser URL of the repository, e.g.
        ``http://git.example.com/yoloco/project1``.
    full_name
        ``owner/name`` of the repository.

    Returns
    -------
    RepositorySources
        Attributes with ``source`` set to the URL host and
        ``subject_source`` set to host plus path.

    Raises
    ------
    TranslationError
        If the URL cannot be parsed or has no host.

    Examples
    --------
    >>> repository_sources("http://git.example.com/yoloco/project1", "yoloco/project1")
    RepositorySources(source='git.example.com', subject_source='git.example.com/yoloco/project1', repository_id='yoloco/project1')

    """
    try:
        parsed = urllib.parse.urlsplit(html_url.strip())
        host = parsed.netloc.rpartition("@")[2]
    except ValueError as exc:
        raise TranslationError.invalid_repository_url(html_url) from exc

    if not host:
        raise TranslationError.invalid_repository_url(html_url)

    return RepositorySources(
        source=host,
        subject_source=_join_host_path(host, parsed.path),
        repository_id=full_name,
    )
