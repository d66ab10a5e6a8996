from __future__ import annotations

"""
Death register report generator
-------------------------------
This module writes a DOCX report for a list of DeathRecord objects.

Design goals:
- Keep the engine usable even if report dependencies are missing (lazy imports).
- Every number in the report comes from the same pure functions the CLI uses
  (`aggregate`, `build_month_grid`, `upcoming_anniversaries`), evaluated at
  one reference date, so the report and the screen agree.
- Charts are only drawn when they carry information (no empty pies).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple
import os
import tempfile

from .anniversaries import build_month_grid, month_summary, upcoming_anniversaries
from .cohorts import aggregate
from .dates import age_at_death, to_date
from .models import DeathRecord
from . import config as settings


# -----------------------------
# Configuration
# -----------------------------

@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Death Register Report"
    subtitle: str = "In loving memory of our departed members"
    organisation_name: Optional[str] = None
    source_file: Optional[str] = None

    # Date the report is "as of"; None means today
    reference_date: Optional[date] = None
    window_months: int = settings.DEFAULT_TREND_WINDOW
    anniversary_days: int = settings.DEFAULT_ANNIVERSARY_DAYS
    anniversary_limit: int = 10

    # How many rows to show in the register preview table
    max_rows_preview: int = 15

    # Optional: list of CLI commands used to create the current selection
    command_log: Optional[List[str]] = field(default=None)


def _fmt(d) -> str:
    v = to_date(d)
    return v.strftime("%d %b %Y") if v else ""


# -----------------------------
# Main entry point used by CLI
# -----------------------------

def generate_docx_report(
    records: Sequence[DeathRecord],
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    scope_label: str = "Current Selection",
) -> str:
    """
    Generate a DOCX report + charts for a list of death records.

    The records are only read; the source export is never modified.
    """
    config = config or ReportConfig()

    # Lazy imports: only required when "report" is used.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        import numpy as np
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib (and numpy).\n"
            "Install with: python -m pip install matplotlib numpy"
        ) from e

    if not records:
        raise ValueError("No records to report on (selection is empty).")

    # -----------------------------
    # 1) Compute every view at one reference date
    # -----------------------------
    ref = config.reference_date or date.today()
    stats = aggregate(records, ref, config.window_months)
    upcoming = upcoming_anniversaries(records, ref, config.anniversary_days, config.anniversary_limit)
    grid = build_month_grid(records, ref, today=ref)
    summary = month_summary(records, ref, ref)

    # -----------------------------
    # 2) Charts
    # -----------------------------
    with tempfile.TemporaryDirectory(prefix="memorial_report_") as tmpdir:
        # Each chart is: (title, file_path, caption)
        chart_paths: List[Tuple[str, str, str]] = []

        def _save(filename: str) -> str:
            path = os.path.join(tmpdir, filename)
            plt.tight_layout()
            plt.savefig(path, dpi=200)
            plt.close()
            return path

        known_ages = sum(b.count for b in stats.bins)
        if known_ages:
            plt.figure()
            plt.bar([b.label for b in stats.bins], [b.count for b in stats.bins], color="#8B5CF6")
            plt.title(f"Age at death ({scope_label})")
            plt.xlabel("Age range")
            plt.ylabel("Count")
            chart_paths.append((
                "Age distribution",
                _save("age_distribution.png"),
                f"Based on {known_ages} records with a known date of birth "
                f"({stats.unknown_age} without).",
            ))

        if stats.monthly:
            x = np.arange(len(stats.monthly))
            width = 0.4
            plt.figure(figsize=(8, 4))
            plt.bar(x - width / 2, [p.burials for p in stats.monthly], width, label="Burial", color="#8B5CF6")
            plt.bar(x + width / 2, [p.cremations for p in stats.monthly], width, label="Cremation", color="#F59E0B")
            plt.plot(x, [p.deaths for p in stats.monthly], marker="o", color="#EF4444", label="Deaths")
            plt.xticks(x, [p.label for p in stats.monthly], rotation=45, ha="right")
            plt.ylabel("Count")
            plt.title(f"Monthly trend, last {stats.window_months} months")
            plt.legend()
            chart_paths.append((
                "Monthly trend",
                _save("monthly_trend.png"),
                "Months without deaths are shown as zero so the window is continuous.",
            ))

            plt.figure(figsize=(8, 4))
            notified = np.array([p.notified for p in stats.monthly])
            pending = np.array([p.pending for p in stats.monthly])
            plt.bar(x, notified, label="Notified", color="#10B981")
            plt.bar(x, pending, bottom=notified, label="Pending", color="#F59E0B")
            plt.xticks(x, [p.label for p in stats.monthly], rotation=45, ha="right")
            plt.ylabel("Records")
            plt.title("Family notification status by month")
            plt.legend()
            chart_paths.append((
                "Family notification",
                _save("notification.png"),
                f"{stats.family_notified} of {stats.total} families notified "
                f"({stats.notification_rate}%).",
            ))

        if stats.burial_count + stats.cremation_count:
            plt.figure()
            plt.pie(
                [stats.burial_count, stats.cremation_count],
                labels=["Burial", "Cremation"],
                colors=["#8B5CF6", "#F59E0B"],
                autopct="%1.0f%%",
            )
            plt.title("Burial vs cremation")
            chart_paths.append((
                "Burial vs cremation",
                _save("burial_cremation.png"),
                "Records with neither classification are left out of this ratio.",
            ))

        # -----------------------------
        # 3) Build DOCX report
        # -----------------------------
        doc = Document()
        style = doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)

        def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
            p = doc.add_paragraph()
            r = p.add_run(text)
            r.bold = bold
            r.italic = italic
            r.font.size = Pt(size)
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER

        def _kv(key: str, value: str) -> None:
            p = doc.add_paragraph()
            r = p.add_run(f"{key}: ")
            r.bold = True
            p.add_run(value)

        def _table(header: List[str], rows: List[List[str]]) -> None:
            t = doc.add_table(rows=1, cols=len(header))
            t.style = "Table Grid"
            for cell, text in zip(t.rows[0].cells, header):
                cell.text = text
            for row in rows:
                cells = t.add_row().cells
                for cell, text in zip(cells, row):
                    cell.text = text

        _center_title(config.title, 22, bold=True)
        _center_title(config.subtitle, 12, italic=True)
        if config.organisation_name:
            _center_title(config.organisation_name, 12)

        doc.add_paragraph("")
        _kv("Scope", scope_label)
        _kv("Reference date", _fmt(ref))
        _kv("Records in scope", str(stats.total))
        if stats.excluded:
            _kv("Records without a usable date of death", str(stats.excluded))

        # Headline metrics
        doc.add_heading("Key metrics", level=1)
        trend = f"{stats.yoy_delta:+d}% vs {stats.last_year} last year" if stats.last_year else "no records last year"
        _table(["Metric", "Value", "Note"], [
            ["Total deaths", str(stats.total), "All records in scope"],
            ["This year", str(stats.this_year), trend],
            ["This month", str(stats.this_month), ref.strftime("%B %Y")],
            ["Average age", f"{stats.average_age:.1f}", "Years at time of death"],
            ["Family notified", str(stats.family_notified), f"{stats.notification_rate}% completion rate"],
            ["Funeral services", str(stats.funeral_services_held), "Held on or before the reference date"],
            ["Burial / cremation", f"{stats.burial_count} / {stats.cremation_count}",
             f"{stats.burial_percentage}% / {stats.cremation_percentage}%"],
        ])

        doc.add_paragraph("")
        doc.add_heading("Age distribution", level=1)
        _table(["Age range", "Count", "Percentage"],
               [[b.label, str(b.count), f"{b.percentage}%"] for b in stats.bins])

        doc.add_paragraph("")
        doc.add_heading("Visualizations", level=1)
        for title, path, caption in chart_paths:
            doc.add_paragraph(title)
            doc.add_picture(path, width=Inches(6.5))
            doc.add_paragraph(caption)
            doc.add_paragraph("")

        # Upcoming anniversaries
        doc.add_heading(f"Upcoming anniversaries (next {config.anniversary_days} days)", level=1)
        if upcoming:
            _table(["Date", "Name", "Years", "In (days)"], [
                [_fmt(u.occurrence), u.record.member_name, str(u.years_ago), str(u.days_until)]
                for u in upcoming
            ])
        else:
            doc.add_paragraph("No anniversaries in this window.")

        # Memorial calendar for the reference month
        doc.add_paragraph("")
        doc.add_heading(f"Memorial calendar: {ref.strftime('%B %Y')}", level=1)
        doc.add_paragraph(
            f"{summary.this_month} anniversaries this month, "
            f"{summary.upcoming} in the next {settings.DEFAULT_ANNIVERSARY_DAYS} days, "
            f"{summary.total_memorials} memorials in total."
        )
        days_with_records = [d for d in grid if d.records]
        if days_with_records:
            _table(["Day", "Remembering"], [
                [d.date.strftime("%a %d"), ", ".join(
                    f"{m.record.member_name} ({_fmt(m.record.date_of_death)}, {m.years_ago} years)" for m in d.memorials)]
                for d in days_with_records
            ])

        # A small preview table (first N records)
        doc.add_paragraph("")
        doc.add_heading("Register preview", level=1)
        preview = list(records)[:config.max_rows_preview]
        rows = []
        for r in preview:
            age = age_at_death(r.date_of_birth, r.date_of_death)
            rows.append([
                r.member_name,
                _fmt(r.date_of_death),
                "" if age is None else str(age),
                (r.burial_or_cremation or "").title(),
                _fmt(r.funeral_date),
                "Yes" if r.family_notified else "No",
            ])
        _table(["Name", "Date of death", "Age", "Burial/Cremation", "Funeral", "Family notified"], rows)

        # -----------------------------
        # Reproducibility footer
        # -----------------------------
        doc.add_paragraph("")
        doc.add_heading("Reproducibility footer", level=1)

        from . import __version__ as memorial_version
        generated_at = datetime.now().isoformat(timespec="seconds")

        doc.add_paragraph(f"Memorial version: {memorial_version}")
        doc.add_paragraph(f"Report generated at: {generated_at}")
        if config.source_file:
            doc.add_paragraph(f"Source file: {config.source_file}")
        if config.command_log:
            doc.add_paragraph("Commands used (log):")
            for line in config.command_log:
                doc.add_paragraph(line, style="List Bullet")

        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        doc.save(out_path)
        return out_path
