"""
Append-only mirror of the cash ledger and rent payments into a Google Sheet.

Two worksheets:
- income sheet ("Rekap Penghuni"): one row per rent payment
- expense sheet ("Kas"): one row per confirmed cash-ledger entry, inflow or outflow

The database is the source of truth. Callers use the ``mirror_*`` helpers, which
never raise; a failure comes back as a warning string for the API response.
"""
import json
import logging
from dataclasses import dataclass
from typing import List, Optional

import gspread
from google.oauth2.service_account import Credentials

from kost.core.config import settings

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]

INCOME_SHEET_HEADERS = [
    "Tanggal Bayar",
    "Periode",
    "No. Invoice",
    "Nama Penghuni",
    "Kamar",
    "Jumlah (Rp)",
    "Metode",
    "Catatan",
    "Dibuat Oleh",
]

CASHFLOW_SHEET_HEADERS = [
    "Tanggal",
    "Jenis",
    "Deskripsi",
    "Jumlah (Rp)",
    "Metode",
    "Status",
    "Dibuat Oleh",
    "Catatan",
    "Bukti Nota",
    "Saldo",
]

# Running balance in column J: inflows add, outflows subtract
RUNNING_BALANCE_FORMULA = (
    '=ARRAYFORMULA(IF(A2:A="","",SCAN(0,IF(B2:B="Pemasukan",D2:D,-D2:D),'
    "LAMBDA(acc,val,acc+val))))"
)

CASH_IN = "Pemasukan"
CASH_OUT = "Pengeluaran"


@dataclass
class SheetsConfig:
    spreadsheet_id: str
    income_sheet: str
    expense_sheet: str
    service_account: dict


def get_sheets_config(property_settings=None) -> Optional[SheetsConfig]:
    """
    Resolve the Sheets configuration; per-property settings win over the environment.
    Returns None when the mirror is not configured or the service-account JSON is unreadable.
    """
    sa_json = getattr(property_settings, "google_service_account_json", None) or settings.GOOGLE_SERVICE_ACCOUNT_JSON
    spreadsheet_id = getattr(property_settings, "sheets_spreadsheet_id", None) or settings.SHEETS_SPREADSHEET_ID
    if not sa_json or not spreadsheet_id:
        return None
    try:
        service_account = json.loads(sa_json)
    except (TypeError, ValueError):
        logger.warning("Google service-account JSON is not valid JSON; Sheets sync disabled")
        return None
    return SheetsConfig(
        spreadsheet_id=spreadsheet_id,
        income_sheet=getattr(property_settings, "sheets_income_sheet_name", None) or settings.SHEETS_INCOME_SHEET_NAME,
        expense_sheet=getattr(property_settings, "sheets_expense_sheet_name", None) or settings.SHEETS_EXPENSE_SHEET_NAME,
        service_account=service_account,
    )


def _get_client(config: SheetsConfig) -> gspread.Client:
    """Build and return an authorised gspread client from the service-account info."""
    creds = Credentials.from_service_account_info(config.service_account, scopes=SCOPES)
    return gspread.authorize(creds)


def _get_worksheet(config: SheetsConfig, sheet_name: str) -> gspread.Worksheet:
    client = _get_client(config)
    spreadsheet = client.open_by_key(config.spreadsheet_id)
    return spreadsheet.worksheet(sheet_name)


def _append_row(config: SheetsConfig, sheet_name: str, values: List[str]) -> None:
    """Append one row, retrying up to SHEETS_SYNC_RETRIES attempts in total."""
    attempts = max(1, settings.SHEETS_SYNC_RETRIES)
    for attempt in range(1, attempts + 1):
        try:
            worksheet = _get_worksheet(config, sheet_name)
            worksheet.append_row(values, value_input_option="USER_ENTERED", insert_data_option="INSERT_ROWS")
            return
        except Exception:
            if attempt == attempts:
                raise
            logger.warning("Sheets append to %s failed (attempt %s/%s), retrying", sheet_name, attempt, attempts)


def append_tenant_payment_row(
    config: SheetsConfig,
    *,
    date_paid: str,
    period: str,
    invoice_no: str,
    tenant_name: str,
    room_no: int,
    amount: int,
    method: str,
    notes: str,
    created_by: str,
) -> None:
    _append_row(
        config,
        config.income_sheet,
        [date_paid, period, invoice_no, tenant_name, str(room_no), str(amount), method, notes, created_by],
    )
    logger.info("Payment %s appended to sheet %s", invoice_no, config.income_sheet)


def append_cashflow_row(
    config: SheetsConfig,
    *,
    date: str,
    type: str,
    description: str,
    amount: int,
    method: str,
    status: str,
    created_by: str,
    notes: str,
    receipt_url: Optional[str] = None,
) -> None:
    _append_row(
        config,
        config.expense_sheet,
        [date, type, description, str(amount), method, status, created_by, notes, receipt_url or ""],
    )
    logger.info("%s %s appended to sheet %s", type, amount, config.expense_sheet)


def _setup_one_sheet(worksheet: gspread.Worksheet, headers: List[str]) -> None:
    """Rewrite the sheet as header row + existing data rows, then style the header."""
    all_rows = worksheet.get_all_values()
    data_rows = [row for row in all_rows if row and row[0] and row[0] != headers[0]]

    worksheet.clear()
    worksheet.update(range_name="A1", values=[headers] + data_rows, value_input_option="USER_ENTERED")

    last_col = chr(ord("A") + len(headers) - 1)
    worksheet.format(
        f"A1:{last_col}1",
        {
            "backgroundColor": {"red": 0.1, "green": 0.2, "blue": 0.45},
            "textFormat": {"bold": True, "foregroundColor": {"red": 1, "green": 1, "blue": 1}, "fontSize": 10},
            "horizontalAlignment": "CENTER",
        },
    )
    worksheet.freeze(rows=1)
    worksheet.columns_auto_resize(0, len(headers))


def setup_sheet_headers(config: SheetsConfig) -> None:
    """Apply headers to both worksheets and install the running balance formula."""
    client = _get_client(config)
    spreadsheet = client.open_by_key(config.spreadsheet_id)

    _setup_one_sheet(spreadsheet.worksheet(config.income_sheet), INCOME_SHEET_HEADERS)
    cash_sheet = spreadsheet.worksheet(config.expense_sheet)
    _setup_one_sheet(cash_sheet, CASHFLOW_SHEET_HEADERS)
    cash_sheet.update_acell("J2", RUNNING_BALANCE_FORMULA)
    logger.info("Sheet headers applied to spreadsheet %s", config.spreadsheet_id)


def cash_label(entry_type: str) -> str:
    return CASH_IN if entry_type == "income" else CASH_OUT


def mirror_cashflow(config: Optional[SheetsConfig], **row) -> Optional[str]:
    """Append a cash-ledger row; returns a warning instead of raising."""
    if config is None:
        return None
    try:
        append_cashflow_row(config, **row)
        return None
    except Exception as e:
        logger.exception("Failed to append cashflow row to Google Sheet")
        return f"Sheets sync failed: {e}"


def mirror_payment(config: Optional[SheetsConfig], payment_row: dict, cash_row: dict) -> Optional[str]:
    """Append the tenant-payment row and its cash inflow; returns a warning instead of raising."""
    if config is None:
        return None
    try:
        append_tenant_payment_row(config, **payment_row)
        append_cashflow_row(config, **cash_row)
        return None
    except Exception as e:
        logger.exception("Failed to append payment %s to Google Sheet", payment_row.get("invoice_no"))
        return f"Sheets sync failed: {e}"
