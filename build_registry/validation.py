"""
Input validation module for the build registry.

Provides validation functions for bucket slugs, component names, labels and
run fingerprints.
"""

import logging
import re

from .config import config
from .errors import ValidationError

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]*$")
_COMPONENT_RE = re.compile(r"^[a-zA-Z0-9._-]+$")
_FINGERPRINT_RE = re.compile(r"^[a-zA-Z0-9._-]+$")


def validate_slug(slug: str) -> None:
    """
    Validate a bucket slug.

    Args:
        slug: Slug to validate (e.g., "ubuntu-base")

    Raises:
        ValidationError: if slug is invalid

    Validation Rules:
        - Must be 1-{MAX_SLUG_LENGTH} characters (configurable)
        - Must start with an alphanumeric character
        - Only alphanumeric characters, hyphens (-) and underscores (_)

    Examples:
        >>> validate_slug("ubuntu-base")  # OK
        >>> validate_slug("-ubuntu")  # Raises (leading hyphen)
    """
    if not slug or len(slug) > config.MAX_SLUG_LENGTH:
        logger.warning(f"Invalid slug length: {len(slug or '')}")
        raise ValidationError(f"Invalid slug: must be 1-{config.MAX_SLUG_LENGTH} characters")

    if not _SLUG_RE.match(slug):
        logger.warning(f"Invalid slug format: {slug}")
        raise ValidationError(
            "Invalid slug: must start with an alphanumeric character and contain only "
            "alphanumerics, hyphens and underscores"
        )

    logger.debug(f"Slug validated: {slug}")


def validate_component_name(name: str) -> None:
    """
    Validate a component name such as "amazon-ebs.ubuntu" or "happycloud.image".

    Raises:
        ValidationError: if the name is empty, too long or contains characters
            other than alphanumerics, dots, hyphens and underscores
    """
    if not name or len(name) > config.MAX_COMPONENT_NAME_LENGTH:
        logger.warning(f"Invalid component name length: {len(name or '')}")
        raise ValidationError(
            f"Invalid component name: must be 1-{config.MAX_COMPONENT_NAME_LENGTH} characters"
        )

    if not _COMPONENT_RE.match(name):
        logger.warning(f"Invalid component name format: {name}")
        raise ValidationError(
            "Invalid component name: only alphanumeric, dots, hyphens, and underscores allowed"
        )


def validate_labels(labels) -> None:
    """
    Validate a label mapping.

    Args:
        labels: Mapping of label keys to values. None is accepted as empty.

    Raises:
        ValidationError: if labels is not a mapping, or any key or value is
            not a string within the configured length limits

    Validation Rules:
        - Keys: strings of at most {MAX_LABEL_KEY_LENGTH} characters
        - Values: strings of at most {MAX_LABEL_VALUE_LENGTH} characters
    """
    if labels is None:
        return

    if not isinstance(labels, dict):
        logger.warning(f"Invalid labels type: {type(labels).__name__}")
        raise ValidationError("Invalid labels: must be a mapping of strings to strings")

    for key, value in labels.items():
        if not isinstance(key, str) or len(key) > config.MAX_LABEL_KEY_LENGTH:
            logger.warning(f"Invalid label key: {key!r}")
            raise ValidationError(
                f"Invalid label key {key!r}: must be a string of at most "
                f"{config.MAX_LABEL_KEY_LENGTH} characters"
            )
        if not isinstance(value, str) or len(value) > config.MAX_LABEL_VALUE_LENGTH:
            logger.warning(f"Invalid label value for key {key}")
            raise ValidationError(
                f"Invalid label value for {key!r}: must be a string of at most "
                f"{config.MAX_LABEL_VALUE_LENGTH} characters"
            )

    logger.debug(f"Labels validated: {sorted(labels)}")


def validate_fingerprint(fingerprint: str) -> None:
    """
    Validate a run fingerprint (e.g., a git commit SHA or a CI run identifier).

    Raises:
        ValidationError: if the fingerprint is empty or contains whitespace or
            shell metacharacters
    """
    if not fingerprint:
        raise ValidationError("Invalid fingerprint: must not be empty")

    if not _FINGERPRINT_RE.match(fingerprint):
        logger.warning(f"Invalid fingerprint format: {fingerprint}")
        raise ValidationError(
            "Invalid fingerprint: only alphanumeric, dots, hyphens, and underscores allowed"
        )
