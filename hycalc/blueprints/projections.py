"""
Projection blueprint.

Accepts a property configuration as JSON, runs the projection through the
application's ProjectionService and returns the headline metrics, optionally
with every monthly series and the annual roll-up.
"""

from typing import Any

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from hycalc.models.errors import ConfigurationError, ConvergenceError
from hycalc.services import ProjectionService

projections_bp = Blueprint("projections", __name__, url_prefix="/api")


def _get_service() -> ProjectionService:
    return current_app.extensions["projection_service"]


@projections_bp.route("/projections", methods=["POST"])
def create_projection() -> Any:
    """Run a projection for the posted configuration.

    Query parameters:
        include_series: "true" to include monthly series and annual rows

    Returns:
        JSON response with IRR, MOIC, sale and summary
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    include_series = request.args.get("include_series", "false").lower() == "true"

    try:
        result = _get_service().run_from_dict(data)
    except ValidationError as e:
        return (
            jsonify(
                {
                    "error": "Invalid configuration",
                    "details": e.errors(include_url=False, include_context=False),
                }
            ),
            400,
        )
    except ConfigurationError as e:
        return jsonify({"error": "Invalid configuration", "message": str(e)}), 400
    except ConvergenceError as e:
        current_app.logger.warning(f"IRR did not converge: {str(e)}")
        return (
            jsonify(
                {
                    "error": "IRR did not converge",
                    "message": str(e),
                    "iterations": e.iterations,
                }
            ),
            422,
        )

    return jsonify(result.to_dict(include_arrays=include_series)), 200
