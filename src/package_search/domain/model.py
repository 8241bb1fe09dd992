"""Domain model for package metadata documents.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- No infrastructure dependencies

A PackageDocument is supplied by the storage/crawler layer and replaced
wholesale on update; label collections are tuples, so readers never observe
a partially updated document.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PackageDocument(BaseModel):
    """Value object holding the searchable metadata of one package."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    package: str = Field(min_length=1, description="Unique package name")
    version: str | None = None
    description: str = ""
    platforms: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    versions: tuple[str, ...] = ()
    popularity: float = Field(default=0.0, ge=0.0)
    health: float = Field(default=0.0, ge=0.0)
    maintenance: float = Field(default=0.0, ge=0.0)
    created: datetime | None = None
    updated: datetime | None = None
    is_discontinued: bool = False

    @field_validator("package")
    @classmethod
    def _strip_package(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("package name must not be blank")
        return stripped

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("platforms", "tags", "versions", mode="before")
    @classmethod
    def _none_labels(cls, value: object) -> object:
        return () if value is None else value

    @property
    def text_content(self) -> str:
        """Concatenated text fed to the analyzer: name, description and labels."""
        parts = [self.package, self.description, *self.platforms, *self.tags]
        return " ".join(part for part in parts if part)

    def has_platform(self, platform: str) -> bool:
        return _contains_label(self.platforms, platform)

    def has_tag(self, tag: str) -> bool:
        return _contains_label(self.tags, tag)


def _contains_label(labels: tuple[str, ...], wanted: str) -> bool:
    normalized = wanted.strip().lower()
    return any(label.strip().lower() == normalized for label in labels)
