"""
Configuration module for the build registry.

Loads all configuration from environment variables with sensible defaults.
"""

import os


def parse_labels(raw: str) -> dict:
    """
    Parse a comma-separated list of key=value pairs into a label mapping.

    Args:
        raw: String such as "version=1.7.0,based_off=alpine"

    Returns:
        Dictionary of labels. Empty entries are ignored; whitespace around
        keys and values is stripped.

    Raises:
        ValueError: if an entry has no "=" separator or an empty key

    Example:
        >>> parse_labels("version=1.7.0, based_off=alpine")
        {'version': '1.7.0', 'based_off': 'alpine'}
    """
    labels = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid label entry {entry!r}: expected key=value")
        labels[key] = value.strip()
    return labels


class Config:
    """
    Build registry configuration from environment variables.

    Loads all configuration values from environment variables with sensible defaults.
    All settings can be overridden by setting the corresponding environment variable.
    """

    def __init__(self):
        """
        Initialize configuration from environment variables.

        Environment Variables:
            LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO
            FLASK_HOST: Coordinator bind address. Default: 0.0.0.0
            FLASK_PORT: Coordinator bind port. Default: 6480
            BUCKET_SLUG: Bucket identifier for the pipeline. Default: empty
            BUCKET_LABELS: Default build labels, "k=v,k2=v2". Default: empty
            BUILD_FINGERPRINT_ENV: Name of the variable carrying the run
                fingerprint. Default: BUILD_FINGERPRINT
            GIT_TIMEOUT: Timeout for git fingerprint discovery in seconds. Default: 10
            MAX_SLUG_LENGTH: Maximum bucket slug length. Default: 64
            MAX_COMPONENT_NAME_LENGTH: Maximum component name length. Default: 255
            MAX_LABEL_KEY_LENGTH: Maximum label key length. Default: 255
            MAX_LABEL_VALUE_LENGTH: Maximum label value length. Default: 255
        """
        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

        # Coordinator server
        self.FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
        self.FLASK_PORT = int(os.getenv("FLASK_PORT", "6480"))

        # Bucket
        self.BUCKET_SLUG = os.getenv("BUCKET_SLUG", "")
        self.BUCKET_LABELS = parse_labels(os.getenv("BUCKET_LABELS", ""))

        # Fingerprint discovery
        self.BUILD_FINGERPRINT_ENV = os.getenv("BUILD_FINGERPRINT_ENV", "BUILD_FINGERPRINT")
        self.GIT_TIMEOUT = int(os.getenv("GIT_TIMEOUT", "10"))  # seconds

        # Validation limits
        self.MAX_SLUG_LENGTH = int(os.getenv("MAX_SLUG_LENGTH", "64"))
        self.MAX_COMPONENT_NAME_LENGTH = int(os.getenv("MAX_COMPONENT_NAME_LENGTH", "255"))
        self.MAX_LABEL_KEY_LENGTH = int(os.getenv("MAX_LABEL_KEY_LENGTH", "255"))
        self.MAX_LABEL_VALUE_LENGTH = int(os.getenv("MAX_LABEL_VALUE_LENGTH", "255"))

    def __repr__(self):
        """String representation for logging."""
        return (
            f"Config(LOG_LEVEL={self.LOG_LEVEL}, "
            f"FLASK_HOST={self.FLASK_HOST}, "
            f"FLASK_PORT={self.FLASK_PORT}, "
            f"BUCKET_SLUG={self.BUCKET_SLUG}, "
            f"BUCKET_LABELS={len(self.BUCKET_LABELS)} labels, "
            f"BUILD_FINGERPRINT_ENV={self.BUILD_FINGERPRINT_ENV})"
        )


# Global config instance
config = Config()
