"""
Build registry coordinator.

Runs a Flask service holding one Bucket for the current pipeline execution so
that build workers in separate processes can register components, create or
reconcile builds, merge labels and report completion against shared state.

The coordinator is backed by the in-memory registry service; remote registry
transports plug in through the RegistryService protocol.

Endpoints:
    - GET   /v1/                                 - Health and iteration info
    - GET   /v1/builds                           - All build records
    - GET   /v1/builds/<component>               - One build record
    - PUT   /v1/builds/<component>               - Register component
    - POST  /v1/builds/<component>/initial       - Create initial build
    - PATCH /v1/builds/<component>/labels        - Merge label overrides
    - POST  /v1/builds/<component>/complete      - Push labels, mark done
    - POST  /v1/iteration/populate               - Reconcile with registry

Environment Variables:
    LOG_LEVEL, FLASK_HOST, FLASK_PORT, BUCKET_SLUG, BUCKET_LABELS,
    BUILD_FINGERPRINT_ENV (and the variable it names), GIT_TIMEOUT,
    MAX_SLUG_LENGTH, MAX_COMPONENT_NAME_LENGTH, MAX_LABEL_KEY_LENGTH,
    MAX_LABEL_VALUE_LENGTH

Example:
    $ BUCKET_SLUG=ubuntu-base BUCKET_LABELS="os=ubuntu,version=22.04" python app.py
    $ curl -X PUT localhost:6480/v1/builds/amazon-ebs.ubuntu
    $ curl -X POST localhost:6480/v1/iteration/populate
"""

import logging

from build_registry.bucket import Bucket
from build_registry.config import config
from build_registry.routes import create_app
from build_registry.service import InMemoryRegistryService

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    """Main entry point for the build registry coordinator."""
    debug_mode = logger.getEffectiveLevel() == logging.DEBUG
    logger.info(f"Configuration: {config}")
    bucket = Bucket.from_config(config, InMemoryRegistryService())
    app = create_app(bucket)
    logger.info(
        f"Starting build registry coordinator for bucket '{bucket.slug}' "
        f"(fingerprint {bucket.iteration.fingerprint}) on {config.FLASK_HOST}:{config.FLASK_PORT}"
    )
    logger.info(f"Log level: {logging.getLevelName(logger.getEffectiveLevel())}")
    if debug_mode:
        logger.info("Flask debug mode enabled")
    app.run(host=config.FLASK_HOST, port=config.FLASK_PORT, debug=debug_mode)


if __name__ == "__main__":
    main()
