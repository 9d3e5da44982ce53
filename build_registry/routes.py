"""
Flask application exposing a Bucket to pipeline workers.

Workers running in separate processes share one Bucket through these
endpoints. All bodies are JSON.

Endpoints:
    - GET   /v1/                                 - Health and iteration info
    - GET   /v1/builds                           - All build records
    - GET   /v1/builds/<component>               - One build record
    - PUT   /v1/builds/<component>               - Register component
    - POST  /v1/builds/<component>/initial       - Create initial build
    - PATCH /v1/builds/<component>/labels        - Merge label overrides
    - POST  /v1/builds/<component>/complete      - Push labels, mark done
    - POST  /v1/iteration/populate               - Reconcile with registry

Remote calls accept an optional ``timeout`` query parameter in seconds.
"""

import logging
from flask import Flask, jsonify, request

from .context import CallContext
from .errors import (
    BuildRegistryError,
    NotFoundError,
    RegistrationError,
    RemoteError,
    ValidationError,
)
from .validation import validate_component_name

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    RegistrationError: 409,
    RemoteError: 502,
}


def _call_context() -> CallContext:
    timeout = request.args.get("timeout")
    if timeout is None:
        return CallContext.background()
    try:
        seconds = float(timeout)
    except ValueError:
        raise ValidationError(f"Invalid timeout: {timeout!r}") from None
    if seconds <= 0:
        raise ValidationError("Invalid timeout: must be positive")
    return CallContext.with_timeout(seconds)


def create_app(bucket) -> Flask:
    """
    Create the coordinator Flask app for ``bucket``.

    Error responses:
        400: Malformed component name, labels or timeout
        404: No build record for the component
        409: Component not registered, or invalid state change
        502: Registry service call failed or timed out
    """
    app = Flask(__name__)
    app.config["BUCKET"] = bucket

    @app.errorhandler(BuildRegistryError)
    def handle_registry_error(error):
        status = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(error, cls)), 500
        )
        logger.warning(f"{request.method} {request.path} -> {status}: {error}")
        return jsonify({"error": type(error).__name__, "message": str(error)}), status

    @app.route("/v1/")
    def v1_root():
        iteration = bucket.iteration
        return jsonify(
            {
                "bucket": bucket.slug,
                "fingerprint": iteration.fingerprint,
                "iteration_id": iteration.remote_id,
                "builds": len(iteration),
            }
        )

    @app.route("/v1/builds")
    def list_builds():
        builds = bucket.builds()
        return jsonify({name: record.to_dict() for name, record in sorted(builds.items())})

    @app.route("/v1/builds/<component>", methods=["GET"])
    def get_build(component):
        record, ok = bucket.iteration.load(component)
        if not ok:
            raise NotFoundError(f"No build found for component '{component}'")
        return jsonify(record.to_dict())

    @app.route("/v1/builds/<component>", methods=["PUT"])
    def register_build(component):
        validate_component_name(component)
        logger.info(f"Registering component '{component}'")
        bucket.register_build_for_component(component)
        record, _ = bucket.iteration.load(component)
        return jsonify(record.to_dict()), 201

    @app.route("/v1/builds/<component>/initial", methods=["POST"])
    def create_initial_build(component):
        bucket.create_initial_build_for_iteration(component, _call_context())
        record, _ = bucket.iteration.load(component)
        return jsonify(record.to_dict()), 201

    @app.route("/v1/builds/<component>/labels", methods=["PATCH"])
    def update_labels(component):
        overrides = request.get_json(silent=True)
        if not isinstance(overrides, dict):
            raise ValidationError("Request body must be a JSON object of labels")
        bucket.update_labels_for_build(component, overrides)
        record, _ = bucket.iteration.load(component)
        return jsonify(record.to_dict())

    @app.route("/v1/builds/<component>/complete", methods=["POST"])
    def complete_build(component):
        bucket.complete_build(component, _call_context())
        record, _ = bucket.iteration.load(component)
        return jsonify(record.to_dict())

    @app.route("/v1/iteration/populate", methods=["POST"])
    def populate_iteration():
        bucket.populate_iteration(_call_context())
        builds = bucket.builds()
        return jsonify(
            {
                "iteration_id": bucket.iteration.remote_id,
                "builds": {name: record.to_dict() for name, record in sorted(builds.items())},
            }
        )

    return app
