# Overview: Flask API route for the final wizard submission.

"""
Onboarding Routes

POST /api/onboarding/submit persists every step draft at once.

MODE: the stored vendor status decides create vs edit on every call.
Client-side mode and identifiers are hints that lose to stored ones.
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import ModeConflictError, OnboardingError, PartialWriteError, PersistenceError
from ..services import submission_service


onboarding_bp = Blueprint("onboarding", __name__, url_prefix="/api/onboarding")


@onboarding_bp.post("/submit")
def submit_route():
    """
    Submit the whole onboarding.

    Request body:
    {
        "vendorId": "12345678909",      // required
        "mode": "create" | "edit",      // optional hint
        "merchantId": 12,               // optional, used only if status has none
        "equipmentProfileId": 3,        // optional
        "bannerProfileId": 4,           // optional
        "personalData": {...},
        "bankData": {...},
        "equipmentData": {...},         // optional
        "menuData": {...},              // optional
        "bannerData": {...}             // optional
    }

    Returns:
        {ok, mode, merchantId, equipmentProfileId, bannerProfileId}

    Errors:
        400 missing vendorId / merchant id for edit / invalid draft
        404 vendor status not found
        409 create requested for a document that already has a merchant
        500 write failure (retry by submitting again)
    """
    data = request.get_json(silent=True) or {}

    try:
        result = submission_service.submit_request(data)
        return jsonify(result.to_dict()), 200
    except ModeConflictError as e:
        body = {"ok": False, "error": str(e)}
        if e.resolution is not None:
            body["mode"] = e.resolution.effective_mode
        return jsonify(body), e.http_status
    except PartialWriteError as e:
        current_app.logger.error(
            "Submission partially written: failed at %s after %s", e.step, ", ".join(e.committed_steps)
        )
        return jsonify({"ok": False, "error": str(e)}), e.http_status
    except PersistenceError as e:
        current_app.logger.error("Submission write failed at step %s", e.step)
        return jsonify({"ok": False, "error": str(e)}), e.http_status
    except OnboardingError as e:
        return jsonify({"ok": False, "error": str(e)}), e.http_status
    except Exception:
        current_app.logger.exception("Submission failed")
        return jsonify({"ok": False, "error": "Internal server error"}), 500
