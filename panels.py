from dataclasses import dataclass, asdict, field
from typing import Dict, List, Optional

import pandas as pd

from reading_stats import DashboardMetrics

OLIVE = "#8A9A5B"
GOLD  = "#D4A017"


@dataclass
class Panel:
    key: str
    title: str
    kind: str = "bar"                 # "bar" | "line" | "stat"
    source: Optional[str] = None      # DashboardMetrics attribute to plot/show
    x: Optional[str] = None
    y: List[str] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)   # column -> legend name
    colors: List[str] = field(default_factory=list)
    suffix: str = ""                  # stat panels: appended to the number
    caption: Optional[str] = None


def get_panels() -> List[Panel]:
    return [
        Panel(
            key="monthly",
            title="Pages Read Per Month",
            source="monthly_pages",
            x="month",
            y=["pages"],
            colors=[OLIVE],
        ),
        Panel(
            key="ratings",
            title="Rating Comparison",
            kind="line",
            source="last_books",
            x="title",
            y=["rating", "avg_rating"],
            labels={"rating": "Your Rating", "avg_rating": "Average Rating"},
            colors=[OLIVE, GOLD],
            caption="Your last ten books.",
        ),
        Panel(
            key="yearly",
            title="Books Read Per Year",
            source="yearly_books",
            x="year",
            y=["books"],
            colors=[GOLD],
        ),
        Panel(
            key="average_pages",
            title="Average Pages Per Book",
            kind="stat",
            source="average_pages",
            colors=[OLIVE],
            caption="pages",
        ),
        Panel(
            key="longest",
            title="Books by Page Length",
            source="longest_books",
            x="title",
            y=["pages"],
            colors=[OLIVE],
        ),
        Panel(
            key="consistency",
            title="Reading Consistency",
            kind="stat",
            source="consistency",
            colors=[GOLD],
            suffix="%",
            caption="of days read",
        ),
    ]


def panel_frame(panel: Panel, metrics: DashboardMetrics) -> pd.DataFrame:
    """Chart data for a bar/line panel: x column followed by the y columns, renamed for the legend."""
    rows = [asdict(item) for item in getattr(metrics, panel.source)]
    cols = [panel.x] + panel.y
    df = pd.DataFrame(rows, columns=cols)
    for col in panel.y:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df.rename(columns=panel.labels)


def panel_value(panel: Panel, metrics: DashboardMetrics) -> str:
    return f"{getattr(metrics, panel.source)}{panel.suffix}"
