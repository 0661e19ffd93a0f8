# Overview: Read-only access to the prospect spreadsheet used to prefill forms.

"""
Spreadsheet Prefill Source

The event team keeps the list of selected prospects in a spreadsheet.
It is published as CSV (Google Sheets "publish to web"), or exported to a
local .csv/.xlsx file for development.

Rows only ever prefill form defaults. A missing or unreachable
spreadsheet never blocks a submission.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Iterable

import httpx

from ..errors import SheetRowNotFoundError, SheetSourceError
from ..tax_document import normalize


logger = logging.getLogger(__name__)

XLSX_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


@dataclass(frozen=True)
class SheetRow:
    """One prospect row. Every column is optional text."""
    person_type: str | None = None

    pf_full_name: str | None = None
    pf_cpf: str | None = None
    pf_brand_name: str | None = None

    pj_cnpj: str | None = None
    pj_legal_representative_name: str | None = None
    pj_legal_representative_cpf: str | None = None
    pj_state_registration: str | None = None
    pj_brand_name: str | None = None

    contact_phone: str | None = None
    contact_email: str | None = None

    address_full: str | None = None
    address_zipcode: str | None = None
    address_city: str | None = None
    address_state: str | None = None

    bank_name: str | None = None
    bank_agency: str | None = None
    bank_account: str | None = None

    pix_key: str | None = None
    pix_favored_name: str | None = None

    terms_accepted: str | bool | None = None
    type_tend: str | None = None

    @classmethod
    def from_mapping(cls, raw: dict[str, Any]) -> "SheetRow":
        """
        Build a row from a parsed record.

        Unknown columns are ignored, header whitespace is tolerated and
        empty cells become None.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in raw.items():
            if key is None:
                continue
            name = str(key).strip()
            if name not in known:
                continue
            if value is None:
                continue
            if isinstance(value, bool) and name == "terms_accepted":
                values[name] = value
                continue
            text = str(value).strip()
            if text:
                values[name] = text
        return cls(**values)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def matches(self, vendor_id: str) -> bool:
        return vendor_id in (normalize(self.pf_cpf), normalize(self.pj_cnpj))


def parse_csv(text: str) -> list[SheetRow]:
    reader = csv.DictReader(io.StringIO(text))
    rows = []
    for record in reader:
        # skip blank lines
        if not any((v or "").strip() for v in record.values() if isinstance(v, str)):
            continue
        rows.append(SheetRow.from_mapping(record))
    return rows


def parse_xlsx(stream) -> list[SheetRow]:
    from openpyxl import load_workbook

    wb = load_workbook(stream, data_only=True, read_only=True)
    sheet = wb.active
    data = list(sheet.values)
    if not data:
        return []
    headers = [str(h).strip() if h is not None else "" for h in data[0]]
    rows = []
    for values in data[1:]:
        if all(v is None or str(v).strip() == "" for v in values):
            continue
        rows.append(SheetRow.from_mapping(
            {headers[i]: values[i] for i in range(min(len(headers), len(values)))}
        ))
    return rows


def find_in_rows(rows: Iterable[SheetRow], document: str | None) -> SheetRow | None:
    """CPF column wins over CNPJ column when both could match."""
    vendor_id = normalize(document)
    if not vendor_id:
        return None
    rows = list(rows)
    for row in rows:
        if normalize(row.pf_cpf) == vendor_id:
            return row
    for row in rows:
        if normalize(row.pj_cnpj) == vendor_id:
            return row
    return None


class SheetSource:
    """
    Loads prospect rows from a published CSV URL or a local file.

    Rows are fetched on every call; the spreadsheet is edited live by the
    event team and stale rows would prefill outdated bank data.
    """

    def __init__(
        self,
        *,
        url: str | None = None,
        path: str | None = None,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.path = path
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config) -> "SheetSource":
        return cls(
            url=config.get("SHEETS_CSV_URL"),
            path=config.get("SHEETS_FILE_PATH"),
            timeout=float(config.get("SHEETS_TIMEOUT_SECONDS", 10)),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.url or self.path)

    def _fetch_csv(self) -> str:
        try:
            if self._client is not None:
                res = self._client.get(self.url, timeout=self.timeout)
            else:
                with httpx.Client(follow_redirects=True) as client:
                    res = client.get(self.url, timeout=self.timeout)
            res.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("spreadsheet fetch failed url=%s error=%s", self.url, exc)
            raise SheetSourceError("Erro ao buscar CSV") from exc
        return res.text

    def _read_file(self) -> list[SheetRow]:
        path = Path(self.path)
        ext = path.suffix.lstrip(".").lower()
        try:
            if ext in XLSX_EXTENSIONS:
                with path.open("rb") as fh:
                    return parse_xlsx(fh)
            return parse_csv(path.read_text(encoding="utf-8-sig"))
        except OSError as exc:
            logger.warning("spreadsheet read failed path=%s error=%s", self.path, exc)
            raise SheetSourceError("Erro ao ler planilha") from exc

    def load_rows(self) -> list[SheetRow]:
        if not self.is_configured:
            raise SheetSourceError("Planilha não configurada")
        try:
            if self.url:
                return parse_csv(self._fetch_csv())
            return self._read_file()
        except csv.Error as exc:
            raise SheetSourceError("Planilha em formato inválido") from exc

    def find_by_document(self, document: str | None) -> SheetRow | None:
        row = find_in_rows(self.load_rows(), document)
        logger.info("spreadsheet lookup vendor_id=%s found=%s", normalize(document), row is not None)
        return row


SHEET_SOURCE_KEY = "onboarding.sheet_source"


def get_sheet_source() -> SheetSource:
    """The current app's spreadsheet source; built from config on first use."""
    from flask import current_app

    source = current_app.extensions.get(SHEET_SOURCE_KEY)
    if source is None:
        source = SheetSource.from_config(current_app.config)
        current_app.extensions[SHEET_SOURCE_KEY] = source
    return source


def sheet_prefill(document: str | None) -> dict:
    """
    Spreadsheet row for a document plus the personal/bank defaults built
    from it.

    Raises:
        ValidationError: Document too short
        SheetRowNotFoundError: Document absent from the spreadsheet
        SheetSourceError: Spreadsheet unconfigured or unreachable
    """
    from .prefill_service import bank_from_sheet, personal_from_sheet
    from .vendor_lookup_service import require_document

    vendor_id = require_document(document)
    row = get_sheet_source().find_by_document(vendor_id)
    if row is None:
        raise SheetRowNotFoundError(
            "Documento não encontrado na planilha. Entre em contato com o suporte."
        )
    return {
        "ok": True,
        "row": row.to_dict(),
        "personal": personal_from_sheet(row, vendor_id),
        "bank": bank_from_sheet(row, vendor_id),
    }
