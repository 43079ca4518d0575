from __future__ import annotations

from email.message import Message
from importlib import metadata as importlib_metadata
from typing import Optional

from pydantic import BaseModel

from routespec.domain.models import Contact, Info
from routespec.errors import ConfigurationError

_REPOSITORY_LABELS = ("repository", "source", "source code", "code")
_HOMEPAGE_LABELS = ("homepage", "home", "home-page")


class PackageMetadata(BaseModel):
    """Ambient facts about the package the document describes."""

    name: str
    version: str
    description: str = ""
    repository_url: str = ""
    homepage_url: str = ""

    @classmethod
    def from_distribution(cls, dist_name: str) -> "PackageMetadata":
        try:
            meta = importlib_metadata.metadata(dist_name)
        except importlib_metadata.PackageNotFoundError as exc:
            raise ConfigurationError(f"Distribution not installed: {dist_name}") from exc
        return cls.from_metadata(meta)

    @classmethod
    def from_metadata(cls, meta: Message) -> "PackageMetadata":
        """Read core-metadata headers (Name, Version, Summary, Project-URL, Home-page)."""
        urls = _project_urls(meta.get_all("Project-URL") or [])

        repository = _first(urls, _REPOSITORY_LABELS)
        homepage = _first(urls, _HOMEPAGE_LABELS) or (meta.get("Home-page") or "").strip()
        if homepage.upper() == "UNKNOWN":
            homepage = ""

        return cls(
            name=(meta.get("Name") or "").strip(),
            version=(meta.get("Version") or "").strip(),
            description=(meta.get("Summary") or "").strip(),
            repository_url=repository,
            homepage_url=homepage,
        )


def _project_urls(entries: list[str]) -> dict[str, str]:
    # "Repository, https://github.com/x/y" -> {"repository": "https://github.com/x/y"}
    out: dict[str, str] = {}
    for raw in entries:
        label, sep, url = raw.partition(",")
        if not sep:
            continue
        out.setdefault(label.strip().lower(), url.strip())
    return out


def _first(urls: dict[str, str], labels: tuple[str, ...]) -> str:
    for label in labels:
        if urls.get(label):
            return urls[label]
    return ""


def build_info(meta: PackageMetadata) -> Info:
    """
    Build the document's Info block from package metadata.

    Repository and homepage both write the single `contact` field; when both
    are set the homepage one is evaluated last and wins.
    """
    if not meta.name:
        raise ConfigurationError("Package name is required")
    if not meta.version:
        raise ConfigurationError("Package version is required")

    info = Info(title=meta.name, version=meta.version)
    if meta.description:
        info.description = meta.description

    contact: Optional[Contact] = None
    if meta.repository_url:
        contact = Contact(name="Repository", url=meta.repository_url)
    if meta.homepage_url:
        contact = Contact(name="Homepage", url=meta.homepage_url)
    info.contact = contact
    return info
