# Overview: Create-vs-edit decision for a looked-up vendor; pure, no database work.

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import ModeConflictError, ValidationError
from .vendor_lookup_service import MODE_CREATE, MODE_EDIT, MODES, VendorLookupResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModeResolution:
    effective_mode: str
    existing_merchant_id: int | None
    existing_equipment_profile_id: int | None
    existing_banner_profile_id: int | None
    existing_version_id: int | None = None

    @property
    def is_edit(self) -> bool:
        return self.effective_mode == MODE_EDIT


def resolve_mode(lookup: VendorLookupResult, requested_mode: str | None = None) -> ModeResolution:
    """
    Decide the effective mode for a submission.

    - Stored merchant_id forces edit, whatever the client asked for.
    - An explicit "create" against a stored merchant is a conflict, not a
      silent switch: the client state is stale and would duplicate records.
    - Without a stored merchant the client's mode wins, defaulting to create.

    Raises:
        ValidationError: requested_mode is not create/edit
        ModeConflictError: create requested but merchant already exists
    """
    if requested_mode is not None and requested_mode not in MODES:
        raise ValidationError(f"Modo inválido: {requested_mode!r}")

    if lookup.merchant_id is not None:
        effective = MODE_EDIT
    else:
        effective = requested_mode or MODE_CREATE

    resolution = ModeResolution(
        effective_mode=effective,
        existing_merchant_id=lookup.merchant_id,
        existing_equipment_profile_id=lookup.equipment_profile_id,
        existing_banner_profile_id=lookup.banner_profile_id,
        existing_version_id=lookup.version_id,
    )

    if requested_mode == MODE_CREATE and effective == MODE_EDIT:
        logger.warning(
            "create requested against existing merchant vendor_id=%s merchant_id=%s",
            lookup.vendor_id, lookup.merchant_id,
        )
        raise ModeConflictError(
            "Cadastro já foi enviado anteriormente para este documento.",
            resolution=resolution,
        )

    return resolution
