# Overview: Pytest coverage for reading prospect rows from CSV URLs and local files.

import httpx
import pytest
from openpyxl import Workbook

from onboarding.errors import SheetRowNotFoundError, SheetSourceError, ValidationError
from onboarding.services import spreadsheet_service
from onboarding.services.spreadsheet_service import SheetRow, SheetSource, find_in_rows, parse_csv


CPF = "52998224725"
CNPJ = "11222333000181"

CSV_TEXT = (
    "person_type,pf_full_name,pf_cpf,pj_cnpj,pj_legal_representative_name,bank_name,contact_email\n"
    "PF,Maria Silva,529.982.247-25,,,Nubank,maria@example.com\n"
    ",,,,,,\n"
    "PJ,,,11.222.333/0001-81,João Souza,Itaú,\n"
)


class TestSheetRow:
    """Row construction from loosely formatted records."""

    def test_unknown_columns_ignored(self):
        row = SheetRow.from_mapping({"pf_full_name": "Maria", "favorite_color": "blue"})
        assert row.pf_full_name == "Maria"
        assert "favorite_color" not in row.to_dict()

    def test_header_whitespace_and_empty_cells(self):
        row = SheetRow.from_mapping({" bank_name ": " Nubank ", "bank_agency": "  ", None: "x"})
        assert row.bank_name == "Nubank"
        assert row.bank_agency is None

    def test_non_text_cells_become_text(self):
        row = SheetRow.from_mapping({"bank_account": 12345, "terms_accepted": True})
        assert row.bank_account == "12345"
        assert row.terms_accepted is True


class TestParsing:
    """CSV parsing and document search."""

    def test_blank_lines_skipped(self):
        rows = parse_csv(CSV_TEXT)
        assert len(rows) == 2
        assert rows[0].pf_full_name == "Maria Silva"
        assert rows[1].pj_legal_representative_name == "João Souza"

    def test_find_by_masked_or_plain_document(self):
        rows = parse_csv(CSV_TEXT)
        assert find_in_rows(rows, CPF).pf_full_name == "Maria Silva"
        assert find_in_rows(rows, "11.222.333/0001-81").bank_name == "Itaú"

    def test_cpf_column_wins(self):
        """A document in the CPF column beats the same digits in a CNPJ column."""
        rows = [
            SheetRow(pj_cnpj=CPF, bank_name="second"),
            SheetRow(pf_cpf=CPF, bank_name="first"),
        ]
        assert find_in_rows(rows, CPF).bank_name == "first"

    def test_missing_or_empty_document(self):
        rows = parse_csv(CSV_TEXT)
        assert find_in_rows(rows, "00000000000") is None
        assert find_in_rows(rows, None) is None
        assert find_in_rows(rows, "") is None


class TestSheetSource:
    """Loading rows from a URL or a file."""

    def test_unconfigured(self):
        source = SheetSource()
        assert source.is_configured is False
        with pytest.raises(SheetSourceError):
            source.load_rows()

    def test_csv_url(self):
        def handler(request):
            assert request.url.path == "/sheet.csv"
            return httpx.Response(200, text=CSV_TEXT)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        source = SheetSource(url="https://sheets.example.com/sheet.csv", client=client)
        row = source.find_by_document(CNPJ)
        assert row.pj_legal_representative_name == "João Souza"

    def test_csv_url_http_error(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        source = SheetSource(url="https://sheets.example.com/sheet.csv", client=client)
        with pytest.raises(SheetSourceError):
            source.load_rows()

    def test_csv_url_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        source = SheetSource(url="https://sheets.example.com/sheet.csv", client=client)
        with pytest.raises(SheetSourceError):
            source.load_rows()

    def test_csv_file_with_bom(self, tmp_path):
        path = tmp_path / "prospects.csv"
        path.write_text(CSV_TEXT, encoding="utf-8-sig")
        rows = SheetSource(path=str(path)).load_rows()
        assert rows[0].person_type == "PF"

    def test_xlsx_file(self, tmp_path):
        wb = Workbook()
        ws = wb.active
        ws.append(["person_type", "pf_full_name", "pf_cpf", "bank_account"])
        ws.append(["PF", "Maria Silva", CPF, 12345])
        ws.append([None, None, None, None])
        path = tmp_path / "prospects.xlsx"
        wb.save(path)

        rows = SheetSource(path=str(path)).load_rows()
        assert len(rows) == 1
        assert rows[0].pf_full_name == "Maria Silva"
        assert rows[0].bank_account == "12345"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SheetSourceError):
            SheetSource(path=str(tmp_path / "missing.csv")).load_rows()

    def test_from_config(self):
        source = SheetSource.from_config({"SHEETS_FILE_PATH": "/tmp/x.csv", "SHEETS_TIMEOUT_SECONDS": "3"})
        assert source.path == "/tmp/x.csv"
        assert source.url is None
        assert source.timeout == 3.0


class TestSheetPrefill:
    """Spreadsheet row plus step defaults for a document."""

    def _install(self, app, tmp_path):
        path = tmp_path / "prospects.csv"
        path.write_text(CSV_TEXT, encoding="utf-8")
        app.extensions[spreadsheet_service.SHEET_SOURCE_KEY] = SheetSource(path=str(path))

    def test_found(self, app, db_session, tmp_path):
        self._install(app, tmp_path)
        data = spreadsheet_service.sheet_prefill("529.982.247-25")
        assert data["ok"] is True
        assert data["row"]["bank_name"] == "Nubank"
        assert data["personal"]["fullName"] == "Maria Silva"
        assert data["personal"]["cpfCnpj"] == CPF
        assert data["bank"]["holderDoc"] == CPF

    def test_not_found(self, app, db_session, tmp_path):
        self._install(app, tmp_path)
        with pytest.raises(SheetRowNotFoundError):
            spreadsheet_service.sheet_prefill("00000000191")

    def test_short_document(self, app, db_session):
        with pytest.raises(ValidationError):
            spreadsheet_service.sheet_prefill("123")

    def test_unconfigured_app(self, app, db_session):
        with pytest.raises(SheetSourceError):
            spreadsheet_service.sheet_prefill(CPF)
