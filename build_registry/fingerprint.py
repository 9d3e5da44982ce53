"""
Fingerprint discovery for the build registry.

Resolves the identifier of the current pipeline execution from the process
environment, falling back to the commit at git HEAD.
"""

import logging
import os
import subprocess

from .errors import FingerprintError
from .validation import validate_fingerprint

logger = logging.getLogger(__name__)


def git_head_fingerprint(cwd: str | None = None, timeout: int = 10) -> str:
    """
    Return the commit SHA at git HEAD for ``cwd``.

    Args:
        cwd: Repository directory (default: current working directory)
        timeout: Seconds to wait for git

    Returns:
        40-character commit SHA

    Raises:
        FingerprintError: if git is missing, times out, or ``cwd`` is not a
            git work tree
    """
    git_cmd = ["git", "rev-parse", "HEAD"]
    logger.debug(f"Running command: {' '.join(git_cmd)}")

    try:
        git = subprocess.run(
            git_cmd,
            cwd=cwd,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        logger.error("git executable not found")
        raise FingerprintError("Cannot resolve fingerprint: git is not installed") from e
    except subprocess.TimeoutExpired as e:
        logger.error(f"git rev-parse timed out after {timeout}s")
        raise FingerprintError("Cannot resolve fingerprint: git timed out") from e
    except subprocess.CalledProcessError as e:
        error_msg = e.stderr.decode().strip()
        logger.error(f"git rev-parse failed: {error_msg}")
        raise FingerprintError(f"Cannot resolve fingerprint from git: {error_msg}") from e

    fingerprint = git.stdout.decode().strip()
    logger.debug(f"Git HEAD fingerprint: {fingerprint}")
    return fingerprint


def resolve_fingerprint(env_var: str = "BUILD_FINGERPRINT", cwd: str | None = None, timeout: int = 10) -> str:
    """
    Resolve the fingerprint identifying this pipeline execution.

    Resolution order:
        1. Value of the environment variable ``env_var``, if set and non-empty
        2. Commit SHA at git HEAD of ``cwd``

    Raises:
        FingerprintError: if neither source yields a fingerprint
        ValidationError: if the resolved fingerprint is malformed
    """
    fingerprint = os.getenv(env_var, "").strip()
    if fingerprint:
        logger.info(f"Using fingerprint from {env_var}: {fingerprint}")
    else:
        logger.info(f"{env_var} not set; using git HEAD as fingerprint")
        fingerprint = git_head_fingerprint(cwd=cwd, timeout=timeout)

    validate_fingerprint(fingerprint)
    return fingerprint
