import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sop_dashboard.models import Observation


SAMPLE_EXPORT = """\
Detroit Cathode Manufacturing - Demand Supply Time Series
Run date: 2024-03-01

Requirements at Plant P103,1,2,3,4
Total Demand,100,110,90,100
Available Supply,120,125,115,120
,5,5,5,5
Fill Rate,80,85,90,85
Planned FG Inventory,500,520,n/a,480
Critical Alerts,5
Capacity Alerts,,3
Supporting Alerts
"""


@pytest.fixture
def sample_export() -> str:
    return SAMPLE_EXPORT


def make_observations(rows, scenario="BASE"):
    """Build observations from (category, week, value) tuples."""
    return [Observation(category, str(week), float(value), scenario) for category, week, value in rows]


@pytest.fixture
def two_scenario_observations():
    return (
        make_observations([
            ("Fill Rate", 1, 80),
            ("Fill Rate", 2, 90),
            ("Total Demand", 1, 100),
        ], "BASE")
        + make_observations([
            ("Fill Rate", 1, 70),
        ], "S1")
    )
