from flask import Blueprint, jsonify

from blueprints.api_helpers import admin_required, error, handle_service_errors, json_body
from extensions import store
from services.country_codes import CountryCodeService

bp = Blueprint("country_codes", __name__, url_prefix="/api/country-codes")

country_code_service = CountryCodeService(store)


@bp.route("", methods=["GET"])
@admin_required
def list_country_codes():
    codes = [c.to_dict() for c in country_code_service.list_all()]
    return jsonify({"success": True, "countryCodes": codes}), 200


@bp.route("/enabled", methods=["GET"])
def enabled_country_codes():
    codes = [c.to_dict() for c in country_code_service.enabled()]
    return jsonify({"success": True, "countryCodes": codes}), 200


@bp.route("", methods=["POST"])
@admin_required
@handle_service_errors
def add_country_code():
    code = country_code_service.add(json_body())
    return jsonify({"success": True, "countryCode": code.to_dict()}), 201


@bp.route("/<code_id>", methods=["PUT"])
@admin_required
@handle_service_errors
def update_country_code(code_id):
    code = country_code_service.update(code_id, json_body())
    return jsonify({"success": True, "countryCode": code.to_dict()}), 200


@bp.route("/<code_id>", methods=["DELETE"])
@admin_required
@handle_service_errors
def delete_country_code(code_id):
    country_code_service.delete(code_id)
    return jsonify({"success": True, "message": "Country code deleted"}), 200


@bp.route("/batch-update-sort", methods=["POST"])
@admin_required
@handle_service_errors
def batch_update_sort():
    updates = json_body().get("updates")
    if not isinstance(updates, list):
        return error("updates must be a list")
    updated, errors = country_code_service.batch_update_sort(updates)
    return jsonify({"success": not errors, "updated": updated, "errors": errors}), 200


@bp.route("/<code_id>/set-default", methods=["POST"])
@admin_required
@handle_service_errors
def set_default(code_id):
    code = country_code_service.set_default(code_id)
    return jsonify({"success": True, "countryCode": code.to_dict()}), 200
