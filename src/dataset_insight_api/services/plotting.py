import altair as alt
from typing import Any, Dict, Optional

from ..core.config import settings
from ..models.domain import Chart

CHART_WIDTH = 450
CHART_HEIGHT = 250


def render_chart(chart: Chart, backend: Optional[str] = None) -> Dict[str, Any]:
    """Render an aggregated dashboard chart as a Vega or Vega-Lite spec."""
    data = alt.Data(values=[point.model_dump() for point in chart.data])
    base = alt.Chart(data, title=chart.title, width=CHART_WIDTH, height=CHART_HEIGHT)
    tooltip = [alt.Tooltip("segment:N"), alt.Tooltip("value:Q", format=",.1f")]

    if chart.type == "pie":
        spec = base.mark_arc().encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("segment:N", title=None),
            tooltip=tooltip,
        )
    else:
        if chart.type == "line":
            marked = base.mark_line(point=True)
        elif chart.type == "scatter":
            marked = base.mark_point(filled=True)
        else:
            marked = base.mark_bar(color="steelblue")
        spec = marked.encode(
            x=alt.X("segment:N", sort="-y", title=None, axis=alt.Axis(labelAngle=-45)),
            y=alt.Y("value:Q", title=None),
            tooltip=tooltip,
        )

    return spec.to_dict(format=backend or settings.PLOT_BACKEND)
