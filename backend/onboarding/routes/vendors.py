# Overview: Flask API route for vendor lookup by tax document.

"""
Vendor Routes

POST /api/vendor is the wizard's first call: it tells the client whether
the document may continue onboarding and whether this is a create or an
edit visit. Nothing here writes.
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import OnboardingError
from ..services import vendor_lookup_service


vendors_bp = Blueprint("vendors", __name__, url_prefix="/api")


@vendors_bp.post("/vendor")
def lookup_vendor_route():
    """
    Look up a vendor status record.

    Request body:
    {
        "cpfCnpj": "123.456.789-09"  // masked or digits only
    }

    Returns:
        {ok, vendor: {vendor_id, status, merchant_id, equipment_profile_id,
        banner_profile_id}, canContinue, mode}
    """
    data = request.get_json(silent=True) or {}
    document = str(data.get("cpfCnpj") or "")

    try:
        result = vendor_lookup_service.lookup_vendor(document)
        return jsonify(result.to_dict()), 200
    except OnboardingError as e:
        return jsonify({"ok": False, "error": str(e)}), e.http_status
    except Exception:
        current_app.logger.exception("Vendor lookup failed")
        return jsonify({"ok": False, "error": "Internal server error"}), 500
