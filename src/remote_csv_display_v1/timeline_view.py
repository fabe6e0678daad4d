from __future__ import annotations

import html
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from .errors import InvalidTimelineParamsError, UnknownColumnError
from .markup import fill_template, script_json
from .models import TabularDataset, TimelineGroup, TimelinePoint, TimelineView, TimelineViewConfig
from .parser import parse_number

HISTORY_SIZE = 7
CHART_JS_URL = "https://cdn.jsdelivr.net/npm/chart.js"


def parse_timeline_columns(raw: str) -> TimelineViewConfig:
    names = [part.strip() for part in raw.split(",")]
    if len(names) != 4 or not all(names):
        raise InvalidTimelineParamsError(f"expected 4 column names, got {raw!r}")
    id_column, label_column, value_column, unit_column = names
    return TimelineViewConfig(
        id_column=id_column,
        label_column=label_column,
        value_column=value_column,
        unit_column=unit_column,
    )


def build_timeline_view(
    dataset: TabularDataset,
    config: TimelineViewConfig,
    history_size: int = HISTORY_SIZE,
) -> TimelineView:
    """Group rows by the id column and keep the newest points of each group.

    The first column is read as an ISO date. Groups keep first-seen order and
    take label and unit from their first row; rows with a non-numeric value
    are left out of the series.
    """
    id_index = _column_index(dataset.header, config.id_column)
    label_index = _column_index(dataset.header, config.label_column)
    value_index = _column_index(dataset.header, config.value_column)
    unit_index = _column_index(dataset.header, config.unit_column)

    order: List[str] = []
    meta: Dict[str, Tuple[str, str]] = {}
    points: Dict[str, List[TimelinePoint]] = {}

    for row in dataset.rows:
        key = row[id_index]
        if key not in meta:
            order.append(key)
            meta[key] = (row[label_index], row[unit_index])
            points[key] = []

        value = parse_number(row[value_index])
        if value is None:
            continue
        points[key].append(TimelinePoint(date=row[0], value=value))

    groups: List[TimelineGroup] = []
    for key in order:
        records = sorted(points[key], key=lambda point: point.date, reverse=True)
        label, unit = meta[key]
        groups.append(
            TimelineGroup(
                key=key,
                label=label,
                unit=unit,
                latest=records[0] if records else None,
                history=list(reversed(records[:history_size])),
            )
        )

    return TimelineView(groups=groups)


def render_timeline_html(view: TimelineView, widget_id: Optional[str] = None) -> str:
    widget_id = html.escape(widget_id or f"rcd-timeline-{uuid4().hex[:12]}", quote=True)

    tabs = []
    panels = []
    for index, group in enumerate(view.groups):
        active = index == 0
        tabs.append(
            f'<button type="button" class="rcd-tab{" active" if active else ""}" data-index="{index}">'
            f"{html.escape(group.label)}</button>"
        )
        if group.latest is not None:
            latest = (
                f'<span class="rcd-latest-value">{html.escape(format_value(group.latest.value))}</span> '
                f'<span class="rcd-latest-unit">{html.escape(group.unit)}</span> '
                f'<span class="rcd-latest-date">{html.escape(group.latest.date)}</span>'
            )
        else:
            latest = '<span class="rcd-latest-empty">No data</span>'
        panels.append(
            f'<div class="rcd-panel{" active" if active else ""}" data-index="{index}">'
            f'<div class="rcd-latest">{latest}</div>'
            f'<canvas id="{widget_id}-chart-{index}" height="120"></canvas>'
            "</div>"
        )

    payload = [
        {
            "label": group.label,
            "unit": group.unit,
            "state": group.chart_state.value,
            "dates": [point.date for point in group.history],
            "values": [point.value for point in group.history],
        }
        for group in view.groups
    ]

    return fill_template(
        _TIMELINE_TEMPLATE,
        {
            "STYLE": _TIMELINE_STYLE,
            "WIDGET_ID": widget_id,
            "CHART_JS_URL": CHART_JS_URL,
            "TABS": "".join(tabs),
            "PANELS": "".join(panels),
            "GROUPS_JSON": script_json(payload),
        },
    )


def format_value(value: float) -> str:
    if value.is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def _column_index(header: List[str], name: str) -> int:
    wanted = name.strip()
    for index, title in enumerate(header):
        if title.strip() == wanted:
            return index
    raise UnknownColumnError(f"column not found in header: {name!r}")


_TIMELINE_STYLE = """
.rcd-timeline { font-family: sans-serif; margin: 1.5em 0; }
.rcd-tabs { display: flex; flex-wrap: wrap; gap: 6px; margin-bottom: 1em; }
.rcd-tab { padding: 6px 10px; border-radius: 4px; border: 1px solid #ccc; background-color: #f9f9f9; cursor: pointer; }
.rcd-tab.active { background-color: #333; border-color: #333; color: #fff; }
.rcd-panel { display: none; }
.rcd-panel.active { display: block; }
.rcd-latest { margin-bottom: 0.75em; }
.rcd-latest-value { font-size: 1.6em; font-weight: bold; }
.rcd-latest-date { color: #777; font-size: 0.9em; margin-left: 8px; }
"""

_TIMELINE_TEMPLATE = """<style>__STYLE__</style>
<div class="rcd-timeline" id="__WIDGET_ID__">
  <div class="rcd-tabs">__TABS__</div>
  <div class="rcd-panels">__PANELS__</div>
</div>
<script src="__CHART_JS_URL__"></script>
<script>
(function () {
  var widgetId = "__WIDGET_ID__";
  var groups = __GROUPS_JSON__;

  function start() {
    var root = document.getElementById(widgetId);
    var tabs = root.querySelectorAll(".rcd-tab");
    var panels = root.querySelectorAll(".rcd-panel");

    function initChart(index) {
      var group = groups[index];
      if (group.state !== "uninitialized" || typeof Chart === "undefined") {
        return;
      }
      var canvas = document.getElementById(widgetId + "-chart-" + index);
      new Chart(canvas.getContext("2d"), {
        type: "line",
        data: {
          labels: group.dates,
          datasets: [{ label: group.label + " (" + group.unit + ")", data: group.values, tension: 0.2, fill: false }]
        },
        options: { responsive: true, plugins: { legend: { display: true } } }
      });
      group.state = "initialized";
    }

    function activate(index) {
      tabs.forEach(function (tab, i) {
        tab.classList.toggle("active", i === index);
      });
      panels.forEach(function (panel, i) {
        panel.classList.toggle("active", i === index);
      });
      initChart(index);
    }

    tabs.forEach(function (tab, i) {
      tab.addEventListener("click", function () {
        activate(i);
      });
    });

    if (groups.length > 0) {
      activate(0);
    }
  }

  if (document.readyState === "loading") {
    document.addEventListener("DOMContentLoaded", start);
  } else {
    start();
  }
})();
</script>
"""
