import pytest

from dataset_insight_api.models.domain import Chart, ChartPoint
from dataset_insight_api.services import plotting


def _chart(kind):
    return Chart(
        type=kind,
        title="Revenue by Product",
        data=[ChartPoint(segment="Widget", value=10.0), ChartPoint(segment="Gadget", value=4.0)],
    )


def _mark_type(spec):
    mark = spec["mark"]
    return mark["type"] if isinstance(mark, dict) else mark


@pytest.mark.parametrize(
    "kind, mark", [("bar", "bar"), ("line", "line"), ("pie", "arc"), ("scatter", "point")]
)
def test_mark_per_chart_type(kind, mark):
    spec = plotting.render_chart(_chart(kind), backend="vega-lite")

    assert "vega-lite" in spec["$schema"]
    assert _mark_type(spec) == mark


def test_pie_uses_theta():
    spec = plotting.render_chart(_chart("pie"), backend="vega-lite")

    assert spec["encoding"]["theta"]["field"] == "value"
    assert spec["encoding"]["color"]["field"] == "segment"
