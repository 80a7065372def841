"""
Domain models for the static store publisher.

`AppRecord` is the canonical, schema-complete form of one bundle's metadata as
it appears in `apps/index.json`. Field names are snake_case in Python and
camelCase (the aliases) on the wire, matching what the front-end consumes.
`SplitManifest` and `UpdateManifest` describe the JSON files written next to
chunked artifacts.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


def _float_to_int(value: Any) -> Any:
    if isinstance(value, float):
        return int(value)
    return value


EmptyIfNone = Annotated[str, BeforeValidator(_none_to_empty)]
IntFromFloat = Annotated[int, BeforeValidator(_float_to_int)]


class Author(BaseModel):
    """
    Author block of an app record. Unknown keys are kept as-is.
    """

    name: str = Field(..., description="Display name; must be non-empty.")
    github_username: EmptyIfNone = Field("", alias="githubUsername")
    keybase_username: EmptyIfNone = Field("", alias="keybaseUsername")
    twitter_username: EmptyIfNone = Field("", alias="twitterUsername")
    picture: EmptyIfNone = Field("")

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)


class Screenshot(BaseModel):
    url: str
    caption: EmptyIfNone = ""

    model_config = ConfigDict(extra="allow", frozen=True)


class AppRecord(BaseModel):
    """
    One published application, as written into the catalog.
    """

    app_id: str = Field(..., alias="appId", description="Stable primary key.")
    package_id: str = Field(..., alias="packageId", description="Identifies one build artifact.")
    name: str
    short_description: str = Field(..., alias="shortDescription")
    description: str = ""
    categories: List[str] = Field(default_factory=list)
    author: Author
    upstream_author: str = Field(..., alias="upstreamAuthor")
    web_link: str = Field(..., alias="webLink")
    code_link: str = Field(..., alias="codeLink")
    version: str
    version_number: IntFromFloat = Field(..., alias="versionNumber")
    is_open_source: bool = Field(..., alias="isOpenSource")
    image_id: str = Field("", alias="imageId", description="<md5>.<ext> of the icon, or empty.")
    package_url: Optional[str] = Field(
        None, alias="packageUrl", description="External URL for artifacts over the redirect threshold."
    )
    screenshots: List[Screenshot] = Field(default_factory=list)
    created_at: IntFromFloat = Field(..., alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    def to_catalog_entry(self) -> Dict[str, Any]:
        """Wire form of the record; `packageUrl` is omitted unless set."""
        data = self.model_dump(by_alias=True)
        if data.get("packageUrl") is None:
            data.pop("packageUrl", None)
        return data


class SplitPart(BaseModel):
    file: str
    sha256: str
    size: int

    model_config = ConfigDict(frozen=True)


class SplitManifest(BaseModel):
    """
    How one oversized file was chunked. Concatenating `parts` in order
    reproduces a file of `original_size` bytes hashing to `original_sha256`.
    """

    original_file: str = Field(..., alias="originalFile")
    original_sha256: str = Field(..., alias="originalSha256")
    original_size: int = Field(..., alias="originalSize")
    parts: List[SplitPart]

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class UpdateManifest(BaseModel):
    """
    Metadata for a binary-update tarball. The split fields are patched in
    when the tarball had to be chunked.
    """

    build: int
    channel: str
    tarball: str
    sha256: str
    size: int
    timestamp: str
    split: Optional[bool] = None
    parts_manifest: Optional[str] = Field(None, alias="partsManifest")
    parts: Optional[List[SplitPart]] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")


__all__ = [
    "AppRecord",
    "Author",
    "Screenshot",
    "SplitManifest",
    "SplitPart",
    "UpdateManifest",
]
