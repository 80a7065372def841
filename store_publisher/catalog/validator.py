"""
Metadata validator: checks one bundle against the required-field schema.

Every check runs even after an earlier one failed, so an operator sees all of
a bundle's problems in one pass. The only exception is unparseable metadata,
which yields exactly one error because nothing else can be checked.

The type checks go beyond presence so that a bundle that passes here can
always be normalized into an `AppRecord` without raising.
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Optional, Tuple

from store_publisher.catalog.source import (
    DESCRIPTION_FILE,
    ICON_FILES,
    METADATA_FILE,
    PACKAGE_FILE,
    BundleHandle,
)
from store_publisher.domain.results import FieldError, ValidationReport

REQUIRED_FIELDS: Tuple[str, ...] = (
    "appId",
    "name",
    "version",
    "versionNumber",
    "packageId",
    "shortDescription",
    "categories",
    "isOpenSource",
    "webLink",
    "codeLink",
    "upstreamAuthor",
    "createdAt",
)
ALLOW_EMPTY_FIELDS = frozenset({"codeLink"})
STRING_FIELDS = frozenset(
    {"appId", "name", "version", "packageId", "shortDescription", "webLink", "codeLink", "upstreamAuthor"}
)
NUMERIC_FIELDS = frozenset({"versionNumber", "createdAt"})
BOOLEAN_FIELDS = frozenset({"isOpenSource"})
# Used verbatim as file names in the output tree.
FILENAME_FIELDS = ("appId", "packageId")
OPTIONAL_AUTHOR_FIELDS = ("githubUsername", "keybaseUsername", "twitterUsername", "picture")


class MetadataParseError(ValueError):
    """metadata.json is missing, not UTF-8, not JSON, or not a JSON object."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


def load_metadata(bundle: BundleHandle) -> Dict[str, Any]:
    """Parse a bundle's metadata file into a dict."""
    try:
        data = json.loads(bundle.read_text(METADATA_FILE), parse_constant=_reject_constant)
    except (OSError, ValueError) as exc:
        raise MetadataParseError(f"{METADATA_FILE} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MetadataParseError(f"{METADATA_FILE} must contain a JSON object")
    return data


def validate_bundle(bundle: BundleHandle) -> ValidationReport:
    """
    Validate one bundle and return its report (no errors means valid).
    """
    report = ValidationReport(bundle=bundle.label)

    try:
        metadata = load_metadata(bundle)
    except MetadataParseError as exc:
        report.errors.append(FieldError(METADATA_FILE, str(exc)))
        return report

    for name in REQUIRED_FIELDS:
        error = _check_required_field(metadata, name)
        if error:
            report.errors.append(error)

    report.errors.extend(_check_author(metadata))
    report.errors.extend(_check_optional_fields(metadata))
    report.errors.extend(_check_description_file(bundle, metadata))

    if not any(bundle.has_file(icon) for icon in ICON_FILES):
        report.errors.append(FieldError("icon", f"no {' or '.join(ICON_FILES)} found"))

    if not bundle.has_file(PACKAGE_FILE):
        report.warnings.append(f"no {PACKAGE_FILE} found (metadata-only entry)")

    return report


def _check_required_field(metadata: Dict[str, Any], name: str) -> Optional[FieldError]:
    if name not in metadata:
        return FieldError(name, "missing required field")
    value = metadata[name]
    if isinstance(value, str) and not value.strip() and name not in ALLOW_EMPTY_FIELDS:
        return FieldError(name, "empty required field")

    if name in STRING_FIELDS and not isinstance(value, str):
        return FieldError(name, f"expected a string, got {type(value).__name__}")
    if name in NUMERIC_FIELDS and (isinstance(value, bool) or not isinstance(value, (int, float))):
        return FieldError(name, f"expected a number, got {type(value).__name__}")
    if name in NUMERIC_FIELDS and isinstance(value, float) and not math.isfinite(value):
        return FieldError(name, "expected a finite number")
    if name in BOOLEAN_FIELDS and not isinstance(value, bool):
        return FieldError(name, f"expected a boolean, got {type(value).__name__}")
    if name in FILENAME_FIELDS and (value in (".", "..") or "/" in value or "\\" in value):
        return FieldError(name, f"{value!r} cannot be used as a file name")
    if name == "categories" and isinstance(value, list):
        if not all(isinstance(item, str) for item in value):
            return FieldError(name, "categories must be strings")
    return None


def _check_author(metadata: Dict[str, Any]) -> List[FieldError]:
    author = metadata.get("author", {})
    if not isinstance(author, dict):
        return [FieldError("author", "expected an object")]

    errors: List[FieldError] = []
    name = author.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append(FieldError("author.name", "missing or empty"))
    for key in OPTIONAL_AUTHOR_FIELDS:
        value = author.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(FieldError(f"author.{key}", "expected a string"))
    return errors


def _check_description_file(bundle: BundleHandle, metadata: Dict[str, Any]) -> List[FieldError]:
    """The long description falls back to description.md when metadata has none."""
    if metadata.get("description") or not bundle.has_file(DESCRIPTION_FILE):
        return []
    try:
        bundle.read_text(DESCRIPTION_FILE)
    except UnicodeDecodeError:
        return [FieldError(DESCRIPTION_FILE, "not valid UTF-8")]
    return []


def _check_optional_fields(metadata: Dict[str, Any]) -> List[FieldError]:
    errors: List[FieldError] = []

    description = metadata.get("description")
    if description is not None and not isinstance(description, str):
        errors.append(FieldError("description", "expected a string"))

    screenshots = metadata.get("screenshots")
    if screenshots is None:
        return errors
    if not isinstance(screenshots, list):
        errors.append(FieldError("screenshots", "expected a list"))
        return errors
    for index, shot in enumerate(screenshots):
        if isinstance(shot, str):
            continue
        if not isinstance(shot, dict) or not isinstance(shot.get("url"), str):
            errors.append(FieldError(f"screenshots[{index}]", "expected a filename or an object with a url"))
        elif shot.get("caption") is not None and not isinstance(shot["caption"], str):
            errors.append(FieldError(f"screenshots[{index}].caption", "expected a string"))
    return errors


__all__ = [
    "ALLOW_EMPTY_FIELDS",
    "MetadataParseError",
    "REQUIRED_FIELDS",
    "load_metadata",
    "validate_bundle",
]
