"""
Dashboard & report endpoints.

- GET /dashboard: period rollup (cash totals, category breakdown, paid/unpaid, arrears)
- GET /dashboard/pdf: the same rollup as a printable monthly statement
- GET /report, /report/csv: confirmed expenses per month for the chart, and as CSV
"""
import csv
import io
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.auth import User, get_current_user
from kost.core.errors import ValidationFailed
from kost.core.period import current_period, is_valid_period, last_periods, period_range, validate_period
from kost.core.utils import format_rupiah
from kost.schemas.report import DashboardOut, ReportOut
from kost.services.dashboard import build_dashboard, expense_report

router = APIRouter(tags=["reports"])

MAX_REPORT_MONTHS = 24


@router.get("/dashboard", response_model=DashboardOut)
def get_dashboard(
    period: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    return build_dashboard(db, property_id, validate_period(period or current_period()))


def _report_periods(from_: Optional[str], to: Optional[str], months: int) -> List[str]:
    """Explicit from..to when both are valid periods, otherwise the last ``months`` months."""
    if from_ and to and is_valid_period(from_) and is_valid_period(to):
        periods = period_range(from_, to)
        if len(periods) > MAX_REPORT_MONTHS:
            raise ValidationFailed("Report range too long", {"max_months": MAX_REPORT_MONTHS})
        return periods
    return last_periods(min(months, MAX_REPORT_MONTHS))


@router.get("/report", response_model=ReportOut)
def get_report(
    from_: Optional[str] = Query(None, alias="from", description="YYYY-MM"),
    to: Optional[str] = Query(None, description="YYYY-MM"),
    months: int = Query(12, ge=1),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    return expense_report(db, property_id, _report_periods(from_, to, months))


@router.get("/report/csv")
def download_report_csv(
    from_: Optional[str] = Query(None, alias="from", description="YYYY-MM"),
    to: Optional[str] = Query(None, description="YYYY-MM"),
    months: int = Query(12, ge=1),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    """Download the expense report as CSV: one row per month, one column per category."""
    report = expense_report(db, property_id, _report_periods(from_, to, months))
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["Periode", "Total"] + report["categories"])
    for row in report["data"]:
        writer.writerow(
            [row["period"], row["total"]] + [row["categories"].get(c, 0) for c in report["categories"]]
        )
    buf.seek(0)
    return StreamingResponse(
        buf,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=laporan.csv"},
    )


def _pdf_section_title(pdf, title: str):
    pdf.set_font("Helvetica", "B", 12)
    pdf.set_fill_color(30, 58, 95)
    pdf.set_text_color(255, 255, 255)
    pdf.cell(0, 8, f"  {title}", new_x="LMARGIN", new_y="NEXT", fill=True)
    pdf.set_text_color(0, 0, 0)
    pdf.ln(2)


def _pdf_table(pdf, headers: List[str], rows: List[List[str]]):
    """Simple table with alternating row shading; an empty table prints a dash row."""
    col_w = (pdf.w - pdf.l_margin - pdf.r_margin) / len(headers)

    pdf.set_font("Helvetica", "B", 9)
    pdf.set_fill_color(220, 220, 220)
    for h in headers:
        pdf.cell(col_w, 7, str(h), border=1, fill=True)
    pdf.ln()

    pdf.set_font("Helvetica", "", 9)
    for i, row in enumerate(rows or [["-"] * len(headers)]):
        if i % 2 == 0:
            pdf.set_fill_color(245, 245, 245)
        else:
            pdf.set_fill_color(255, 255, 255)
        for val in row:
            pdf.cell(col_w, 6, str(val), border=1, fill=True)
        pdf.ln()
    pdf.ln(4)


@router.get("/dashboard/pdf")
def download_dashboard_pdf(
    period: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    """Monthly statement as PDF."""
    from fpdf import FPDF

    data = build_dashboard(db, property_id, validate_period(period or current_period()))
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, "Laporan Bulanan Kost", new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 6, f"Periode {data['period']}", new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.ln(6)

    _pdf_section_title(pdf, "Ringkasan Kas")
    _pdf_table(
        pdf,
        ["Pemasukan", "Pengeluaran", "Saldo"],
        [[format_rupiah(data["income_total"]), format_rupiah(data["expense_total"]), format_rupiah(data["net_total"])]],
    )

    _pdf_section_title(pdf, "Pengeluaran per Kategori")
    _pdf_table(
        pdf,
        ["Kategori", "Total"],
        [[b["category"], format_rupiah(b["total"])] for b in data["expense_breakdown"]],
    )

    _pdf_section_title(pdf, "Sudah Bayar")
    _pdf_table(
        pdf,
        ["Kamar", "Nama", "Jumlah", "Tanggal Bayar"],
        [[str(t["room_no"]), t["name"], format_rupiah(t["amount"]), (t["paid_at"] or "")[:10]] for t in data["paid_tenants"]],
    )

    _pdf_section_title(pdf, "Belum Bayar")
    _pdf_table(
        pdf,
        ["Kamar", "Nama", "Jumlah"],
        [[str(t["room_no"]), t["name"], format_rupiah(t["amount"])] for t in data["unpaid_tenants"]],
    )

    _pdf_section_title(pdf, "Nunggak")
    _pdf_table(
        pdf,
        ["Kamar", "Nama", "Sejak", "Total Tunggakan"],
        [[str(t["room_no"]), t["name"], t["oldest_period"], format_rupiah(t["total_owed"])] for t in data["nunggak_tenants"]],
    )

    pdf_bytes = pdf.output()
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=laporan-{data['period']}.pdf"},
    )
