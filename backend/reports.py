from io import BytesIO

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from schemas.performance_report import PerformanceReport
from utils.formatting import amount_to_words, format_indian_currency

DAILY_COLUMNS = {
    "record_date": "DATE",
    "age": "AGE",
    "birds_at_start": "OPEN",
    "mortality": "MORT",
    "cumulative_mortality": "CUM MORT",
    "mortality_percent": "MORT %",
    "feed_bags": "FEED BAGS",
    "feed_kg": "FEED KG",
    "feed_per_bird": "FEED/BIRD",
    "cumulative_feed_kg": "CUM FEED KG",
    "cumulative_feed_per_bird": "CUM FEED/BIRD",
    "avg_weight": "AVG WT",
    "remarks": "REMARKS",
}

header_fill = PatternFill(start_color="FF6600", end_color="FF6600", fill_type="solid")
header_font = Font(bold=True, color="FFFFFF")
title_fill = PatternFill(start_color="FFFF00", end_color="FFFF00", fill_type="solid")
bold_font = Font(bold=True)


def _fmt(value, digits: int = 2):
    if value is None:
        return "-"
    return round(value, digits)

def _money(value):
    return format_indian_currency(value) if value is not None else "-"

def daily_frame(report: PerformanceReport) -> pd.DataFrame:
    rows = [row.model_dump() for row in report.rows]
    df = pd.DataFrame(rows, columns=list(DAILY_COLUMNS.keys()))
    return df.rename(columns=DAILY_COLUMNS)

def summary_frame(report: PerformanceReport) -> pd.DataFrame:
    perf = report.performance
    sales = report.sales
    validation = report.validation
    lines = [
        ("Batch", report.batch.batch_no),
        ("Start date", report.batch.start_date.strftime("%d-%m-%Y")),
        ("Status", report.batch.status),
        ("Housed chicks", perf.housed_chicks),
        ("Total mortality", perf.total_mortality),
        ("Mortality %", _fmt(perf.mortality_percent)),
        ("Remaining chicks", report.remaining_chicks),
        ("Birds sold", sales.total_birds_sold),
        ("Weight sold (kg)", _fmt(sales.total_weight_sold, 3)),
        ("Avg weight per bird (kg)", _fmt(sales.avg_weight_per_bird, 3)),
        ("Mean sale age (days)", _fmt(sales.mean_sale_age, 1)),
        ("Expected birds sold", perf.expected_birds_sold),
        ("Short / excess", perf.short_excess),
        ("Feed in (kg)", _fmt(report.procurement.in_kg, 3)),
        ("Feed out (kg)", _fmt(report.procurement.out_kg, 3)),
        ("Net feed (kg)", _fmt(report.procurement.net_kg, 3)),
        ("Daily usage (kg)", _fmt(report.feed.daily_usage_kg, 3)),
        ("Cumulative feed per bird (kg)", _fmt(perf.cumulative_feed_per_bird, 3)),
        ("FCR", _fmt(perf.fcr, 3)),
        ("Chick cost", _money(perf.chick_cost)),
        ("Feed cost", _money(perf.feed_cost)),
        ("Medicine cost", _money(perf.medicine_cost)),
        ("Overhead", _money(perf.overhead)),
        ("Total cost", _money(perf.total_cost)),
        ("Production cost per kg", _money(perf.production_cost_per_kg)),
        ("G.C per kg", _fmt(perf.gc_per_kg)),
        ("Total G.C", _money(perf.total_gc)),
        ("TDS (1%)", _money(perf.tds)),
        ("Final amount", _money(perf.final_amount)),
        ("Final amount in words", amount_to_words(perf.final_amount) if perf.final_amount is not None else "-"),
        ("Record days", f"{validation.record_count} / {validation.min_record_days}"),
        ("Sales match inventory", "YES" if validation.sales_matches_inventory else "NO"),
        ("Performance ready", "YES" if validation.performance_ready else "NO"),
        ("Can close", "YES" if validation.can_close else "NO"),
    ]
    return pd.DataFrame(lines, columns=["ITEM", "VALUE"])

def _style_sheet(ws):
    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")
    for col_idx, column in enumerate(ws.columns, start=1):
        width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max(width + 2, 10), 60)

def write_performance_report_excel(report: PerformanceReport) -> BytesIO:
    """Render the closing report as an in-memory workbook with Daily and Summary sheets."""
    excel_file = BytesIO()
    with pd.ExcelWriter(excel_file, engine="openpyxl") as writer:
        daily_frame(report).to_excel(writer, index=False, sheet_name="Daily")
        summary_frame(report).to_excel(writer, index=False, sheet_name="Summary")

        _style_sheet(writer.sheets["Daily"])
        summary = writer.sheets["Summary"]
        _style_sheet(summary)
        for row in summary.iter_rows(min_row=2):
            if row[0].value in ("Total cost", "Final amount"):
                for cell in row:
                    cell.fill = title_fill
                    cell.font = bold_font

    excel_file.seek(0)
    return excel_file
