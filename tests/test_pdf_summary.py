import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from frontend.ui.pdf import build_pdf_summary  # noqa: E402
from services.simulation_core import SimulationParameters, run_simulation  # noqa: E402


def test_build_pdf_summary_returns_bytes():
    params = SimulationParameters(duration=12, grid_connection=False)
    result = run_simulation(params)

    pdf_bytes = build_pdf_summary(params, result)

    assert isinstance(pdf_bytes, bytes)
    assert pdf_bytes.startswith(b"%PDF")
    assert len(pdf_bytes) > 1000


def test_build_pdf_summary_handles_single_hour_run():
    params = SimulationParameters(duration=1)

    assert build_pdf_summary(params, run_simulation(params)).startswith(b"%PDF")
