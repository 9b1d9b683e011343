"""PDF rendering helpers for the station report.

These utilities centralize layout for the one-page summary offered by the
Streamlit download buttons.
"""

from typing import List, Optional, Sequence, Tuple

from fpdf import FPDF

from services.simulation_core import SOC_MAX_PCT, SOC_MIN_PCT, SimulationParameters, SimulationResult

RGB = Tuple[int, int, int]
Series = Tuple[str, Sequence[float], RGB]

CARD_FILL: RGB = (244, 247, 250)
RULE_GREY: RGB = (225, 228, 232)
SOLAR_RGB: RGB = (230, 160, 0)
GRID_RGB: RGB = (200, 60, 60)
EV_RGB: RGB = (60, 120, 200)
BATTERY_RGB: RGB = (140, 100, 200)
SOC_RGB: RGB = (40, 160, 90)


def _draw_kpi_card(
    pdf: FPDF,
    x: float,
    y: float,
    w: float,
    h: float,
    label: str,
    value: str,
    footnote: str,
    accent: RGB,
) -> None:
    """Card with a coloured accent strip on the left edge."""
    pdf.set_fill_color(*CARD_FILL)
    pdf.set_draw_color(*RULE_GREY)
    pdf.rect(x, y, w, h, style="DF")
    pdf.set_fill_color(*accent)
    pdf.rect(x, y, 1.5, h, style="F")

    inner_x = x + 4
    inner_w = w - 6
    pdf.set_xy(inner_x, y + 2)
    pdf.set_font("Helvetica", "B", 9)
    pdf.set_text_color(60, 60, 60)
    pdf.cell(inner_w, 5, label.upper())

    pdf.set_xy(inner_x, y + 8)
    pdf.set_font("Helvetica", "B", 14)
    pdf.set_text_color(15, 15, 15)
    pdf.cell(inner_w, 8, value)

    pdf.set_xy(inner_x, y + h - 6)
    pdf.set_font("Helvetica", "", 8)
    pdf.set_text_color(90, 90, 90)
    pdf.cell(inner_w, 4, footnote)
    pdf.set_text_color(0, 0, 0)


def _draw_hourly_trace(
    pdf: FPDF,
    x: float,
    y: float,
    w: float,
    h: float,
    series: List[Series],
    title: str,
    y_range: Optional[Tuple[float, float]] = None,
    guides: Sequence[float] = (),
) -> None:
    """Polyline chart of hourly values with optional fixed range and guide lines.

    A zero line is drawn whenever the range spans both signs.
    """
    pdf.set_draw_color(*RULE_GREY)
    pdf.rect(x, y, w, h)
    pdf.set_font("Helvetica", "", 8)
    pdf.set_text_color(60, 60, 60)
    pdf.set_xy(x, y - 5)
    pdf.cell(w, 4, title)

    values = [v for _, vals, _ in series for v in vals]
    if not values:
        pdf.set_text_color(0, 0, 0)
        return
    low, high = y_range if y_range is not None else (min(values + [0.0]), max(values + [0.0]))
    span = max(high - low, 1e-9)

    def to_y(value: float) -> float:
        clipped = min(max(value, low), high)
        return y + h - (clipped - low) / span * h

    pdf.set_draw_color(200, 200, 200)
    for guide in guides:
        pdf.dashed_line(x, to_y(guide), x + w, to_y(guide), 1, 1)
        pdf.set_xy(x + w + 1, to_y(guide) - 2)
        pdf.cell(10, 4, f"{guide:g}")
    if low < 0 < high:
        pdf.line(x, to_y(0.0), x + w, to_y(0.0))

    legend_x = x + 2
    for label, vals, color in series:
        pdf.set_draw_color(*color)
        pdf.set_text_color(*color)
        if len(vals) == 1:
            # Single-hour runs render as a dot.
            pdf.set_fill_color(*color)
            pdf.ellipse(x + w / 2 - 0.8, to_y(vals[0]) - 0.8, 1.6, 1.6, style="F")
        step_x = w / max(1, len(vals) - 1)
        for idx in range(len(vals) - 1):
            pdf.line(x + idx * step_x, to_y(vals[idx]), x + (idx + 1) * step_x, to_y(vals[idx + 1]))
        pdf.set_xy(legend_x, y + 1)
        pdf.cell(14, 4, label)
        legend_x += 14
    pdf.set_text_color(0, 0, 0)


def _draw_section_header(pdf: FPDF, title: str, margin: float, usable_width: float) -> None:
    pdf.set_font("Helvetica", "B", 12)
    pdf.set_text_color(20, 20, 20)
    pdf.cell(0, 7, title, ln=1)
    pdf.set_draw_color(*RULE_GREY)
    pdf.line(margin, pdf.get_y(), margin + usable_width, pdf.get_y())
    pdf.ln(2)


def _pdf_bytes(pdf: FPDF) -> bytes:
    pdf_bytes = pdf.output(dest="S")
    return pdf_bytes.encode("latin-1") if isinstance(pdf_bytes, str) else bytes(pdf_bytes)


def build_pdf_summary(params: SimulationParameters, result: SimulationResult) -> bytes:
    """Render a one-page PDF snapshot of the latest simulation."""
    margin = 12
    pdf = FPDF(format="A4")
    pdf.set_margins(margin, margin, margin)
    pdf.set_auto_page_break(auto=True, margin=margin)
    pdf.add_page()
    usable_width = pdf.w - 2 * margin

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 10, "EV Solar Station - One-page Summary", ln=1)
    pdf.set_font("Helvetica", "", 9)
    pdf.set_text_color(90, 90, 90)
    grid_text = "grid-connected" if params.grid_connection else "islanded"
    pdf.cell(
        0,
        5,
        f"{params.solar_panel_capacity:,.0f} kW PV | {params.battery_capacity:,.0f} kWh battery | "
        f"{params.number_of_ev_chargers} chargers | {grid_text} | {result.strategy} dispatch | "
        f"{result.duration} h",
        ln=1,
    )
    pdf.set_text_color(0, 0, 0)
    pdf.ln(3)

    _draw_section_header(pdf, "Headline metrics", margin, usable_width)
    card_w = (usable_width - 6) / 3
    card_h = 22
    y = pdf.get_y()
    cards = [
        (
            "Solar generation",
            f"{result.total_solar_generation:,.2f} kWh",
            f"Peak {result.peak_solar_generation:,.2f} kW",
            SOLAR_RGB,
        ),
        (
            "Grid import",
            f"{result.total_grid_import:,.2f} kWh",
            f"Demand {result.total_energy_consumed:,.2f} kWh",
            GRID_RGB,
        ),
        (
            "Cost savings",
            f"${result.estimated_cost_savings:,.2f}",
            f"Avg efficiency {result.average_efficiency:.1f}%",
            SOC_RGB,
        ),
    ]
    for idx, (label, value, footnote, accent) in enumerate(cards):
        _draw_kpi_card(pdf, margin + idx * (card_w + 3), y, card_w, card_h, label, value, footnote, accent)
    pdf.set_y(y + card_h + 4)
    pdf.set_font("Helvetica", "", 9)
    pdf.cell(
        0,
        5,
        f"Battery discharge {result.total_battery_discharge:,.2f} kWh | "
        f"SOC {params.battery_soc:.1f}% -> {result.final_battery_soc:.1f}%",
        ln=1,
    )
    pdf.ln(8)

    _draw_section_header(pdf, "Hourly profile", margin, usable_width)
    pdf.ln(6)
    chart_w = usable_width - 10
    flow_y = pdf.get_y()
    flow_h = 40
    _draw_hourly_trace(
        pdf,
        margin,
        flow_y,
        chart_w,
        flow_h,
        [
            ("PV", [r.solar_kw for r in result.hourly], SOLAR_RGB),
            ("Grid", [r.grid_kw for r in result.hourly], GRID_RGB),
            ("EV", [r.ev_kw for r in result.hourly], EV_RGB),
            ("Battery", [r.battery_kw for r in result.hourly], BATTERY_RGB),
        ],
        "kW by hour (battery: + charging, - discharging)",
    )
    pdf.set_y(flow_y + flow_h + 10)
    soc_y = pdf.get_y()
    soc_h = 25
    _draw_hourly_trace(
        pdf,
        margin,
        soc_y,
        chart_w,
        soc_h,
        [("SOC", [r.soc_pct for r in result.hourly], SOC_RGB)],
        "Battery SOC (%)",
        y_range=(0.0, 100.0),
        guides=(SOC_MIN_PCT, SOC_MAX_PCT),
    )
    pdf.set_y(soc_y + soc_h + 6)

    _draw_section_header(pdf, "Recommendations", margin, usable_width)
    pdf.set_font("Helvetica", "", 9)
    for text in result.recommendations:
        pdf.multi_cell(0, 5, f"- {text}")
        pdf.set_x(margin)

    return _pdf_bytes(pdf)
