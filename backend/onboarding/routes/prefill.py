# Overview: Flask API routes that feed step forms with stored or spreadsheet data.

"""
Prefill Routes

Read endpoints used by the wizard in edit mode (stored merchant,
equipment profile, menu, banner) and before the first submission
(prospect spreadsheet). Also hosts the standalone banner save.

All reads return the exact shape the matching step edits, with defaults
filled in.
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import OnboardingError, ValidationError
from ..services import prefill_service, spreadsheet_service, submission_service


prefill_bp = Blueprint("prefill", __name__, url_prefix="/api")


def _int_param(value, name: str) -> int:
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{name} é obrigatório")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{name} inválido")


def _error(e: OnboardingError):
    return jsonify({"ok": False, "error": str(e)}), e.http_status


@prefill_bp.get("/merchant")
def merchant_prefill_route():
    """
    Personal and bank defaults for a stored merchant.

    Query: merchantId (required)

    Returns:
        {personal: {...}, bank: {...}}
    """
    try:
        merchant_id = _int_param(request.args.get("merchantId"), "merchantId")
        return jsonify(prefill_service.load_merchant_prefill(merchant_id)), 200
    except OnboardingError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Merchant prefill failed")
        return jsonify({"ok": False, "error": "Internal server error"}), 500


@prefill_bp.get("/equipment-profile")
def equipment_prefill_route():
    """Equipment defaults for a stored profile. Query: id (required)."""
    try:
        profile_id = _int_param(request.args.get("id"), "id")
        return jsonify(prefill_service.load_equipment_prefill(profile_id)), 200
    except OnboardingError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Equipment prefill failed")
        return jsonify({"ok": False, "error": "Internal server error"}), 500


@prefill_bp.get("/menu")
def menu_prefill_route():
    try:
        merchant_id = _int_param(request.args.get("merchantId"), "merchantId")
        menu = prefill_service.load_menu_prefill(
            merchant_id,
            default_machines_qty=current_app.config.get("DEFAULT_MACHINES_QTY", 2),
        )
        return jsonify(menu), 200
    except OnboardingError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Menu prefill failed")
        return jsonify({"ok": False, "error": "Internal server error"}), 500


@prefill_bp.get("/banner")
def banner_prefill_route():
    try:
        merchant_id = _int_param(request.args.get("merchantId"), "merchantId")
        return jsonify(prefill_service.load_banner_prefill(merchant_id)), 200
    except OnboardingError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Banner prefill failed")
        return jsonify({"ok": False, "error": "Internal server error"}), 500


@prefill_bp.post("/banner")
def banner_save_route():
    """
    Save a merchant's banner (one per merchant; later saves overwrite).

    Request body:
    {
        "merchantId": 12,          // required
        "bannerName": "Boteco X",  // required, max 28
        "theme": "classic",        // classic | neon | dark
        "accent": "orange"         // orange | blue | purple | green
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        merchant_id = _int_param(data.get("merchantId"), "merchantId")
        banner_name = str(data.get("bannerName") or "").strip()
        if not banner_name:
            raise ValidationError("bannerName é obrigatório")

        banner = submission_service.upsert_banner(
            merchant_id=merchant_id,
            banner_name=banner_name,
            theme=data.get("theme"),
            accent=data.get("accent"),
        )
        return jsonify({
            "merchant_id": banner.merchant_id,
            "banner_name": banner.banner_name,
            "theme": banner.theme,
            "accent": banner.accent,
        }), 200
    except OnboardingError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Banner save failed")
        return jsonify({"ok": False, "error": "Internal server error"}), 500


@prefill_bp.get("/sheet-prefill")
def sheet_prefill_route():
    """
    Spreadsheet row for a document, plus the personal/bank defaults built
    from it.

    Query: document (required, masked or digits)

    Returns:
        {ok, row: {...}, personal: {...}, bank: {...}}
    """
    try:
        return jsonify(spreadsheet_service.sheet_prefill(request.args.get("document"))), 200
    except OnboardingError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Sheet prefill failed")
        return jsonify({"ok": False, "error": "Internal server error"}), 500
