from __future__ import annotations

import functools
import html
from typing import Iterable, List, Optional, Sequence
from uuid import uuid4

from .markup import fill_template, script_json
from .models import TableView, TabularDataset
from .parser import parse_number

PAGE_SIZES = (15, 25, 50, 100)
DEFAULT_PAGE_SIZE = 15


def build_table_view(dataset: TabularDataset, hidden_columns: Iterable[str] = ()) -> TableView:
    hidden = {name.strip().lower() for name in hidden_columns}
    visible = [index for index, name in enumerate(dataset.header) if name.strip().lower() not in hidden]

    return TableView(
        header=[dataset.header[index] for index in visible],
        rows=[[row[index] for index in visible] for row in dataset.rows],
    )


def compare_cells(left: str, right: str) -> int:
    """Numeric order when both cells are finite numbers, else code-point order.

    The browser widget falls back to localeCompare, so text cells can
    order differently there.
    """
    left_number = parse_number(left)
    right_number = parse_number(right)
    if left_number is not None and right_number is not None:
        return (left_number > right_number) - (left_number < right_number)
    return (left > right) - (left < right)


def sort_rows(rows: Sequence[Sequence[str]], column: int, descending: bool = False) -> List[List[str]]:
    key = functools.cmp_to_key(lambda a, b: compare_cells(a[column], b[column]))
    return [list(row) for row in sorted(rows, key=key, reverse=descending)]


def render_table_html(view: TableView, table_id: Optional[str] = None) -> str:
    table_id = table_id or f"rcd-table-{uuid4().hex[:12]}"
    header_cells = "".join(f'<th class="sortable">{html.escape(title)}</th>' for title in view.header)
    page_options = "".join(
        f'<option value="{size}"{" selected" if size == DEFAULT_PAGE_SIZE else ""}>{size}</option>'
        for size in PAGE_SIZES
    )

    return fill_template(
        _TABLE_TEMPLATE,
        {
            "STYLE": _TABLE_STYLE,
            "TABLE_ID": html.escape(table_id, quote=True),
            "HEADER_CELLS": header_cells,
            "PAGE_OPTIONS": page_options,
            "ROWS_JSON": script_json(view.rows),
            "PAGE_SIZE": str(DEFAULT_PAGE_SIZE),
        },
    )


_TABLE_STYLE = """
.rcd-container { font-family: sans-serif; }
.rcd-controls { display: flex; justify-content: space-between; align-items: center; margin: 1em 0; flex-wrap: wrap; gap: 10px; }
.rcd-controls label, .rcd-controls .rcd-pagination-nav { font-size: 0.9em; }
.rcd-controls select, .rcd-controls button { padding: 5px 8px; border-radius: 4px; border: 1px solid #ccc; background-color: #f9f9f9; cursor: pointer; }
.rcd-controls button:disabled { cursor: not-allowed; opacity: 0.5; }
.rcd-pagination-nav span { margin: 0 5px; }
.rcd-table-wrapper { overflow-x: auto; margin: 1.5em 0; }
.rcd-table { width: 100%; border-collapse: collapse; border: 1px solid #ddd; }
.rcd-table th, .rcd-table td { padding: 12px 15px; text-align: left; border-bottom: 1px solid #ddd; }
.rcd-table thead th { background-color: #f2f2f2; color: #333; font-weight: bold; cursor: pointer; user-select: none; position: relative; }
.rcd-table thead th.sortable::after { content: ''; position: absolute; right: 8px; top: 50%; transform: translateY(-50%); border: 4px solid transparent; }
.rcd-table thead th.sort-asc::after { border-bottom-color: #333; }
.rcd-table thead th.sort-desc::after { border-top-color: #333; }
.rcd-table tbody tr:nth-of-type(even) { background-color: #f9f9f9; }
.rcd-table tbody tr:hover { background-color: #f1f1f1; }
"""

_TABLE_TEMPLATE = """<style>__STYLE__</style>
<div class="rcd-container" id="rcd-container-__TABLE_ID__">
  <div class="rcd-table-wrapper">
    <table class="rcd-table" id="__TABLE_ID__">
      <thead><tr>__HEADER_CELLS__</tr></thead>
      <tbody></tbody>
    </table>
  </div>
</div>
<template id="rcd-controls-__TABLE_ID__">
  <div class="rcd-controls">
    <div>
      <label>Show <select class="rcd-rows-per-page">__PAGE_OPTIONS__</select> entries</label>
    </div>
    <div class="rcd-pagination-nav">
      <button type="button" class="rcd-prev-page">&laquo; Previous</button>
      <span class="rcd-page-info"></span>
      <button type="button" class="rcd-next-page">Next &raquo;</button>
    </div>
  </div>
</template>
<script>
(function () {
  var tableId = "__TABLE_ID__";
  var rows = __ROWS_JSON__;

  function start() {
    var container = document.getElementById("rcd-container-" + tableId);
    var table = document.getElementById(tableId);
    var tbody = table.querySelector("tbody");
    var controls = document.getElementById("rcd-controls-" + tableId);
    var currentPage = 1;
    var rowsPerPage = __PAGE_SIZE__;
    var sortColumn = -1;
    var sortDirection = "asc";

    container.insertBefore(controls.content.cloneNode(true), container.firstChild);
    container.appendChild(controls.content.cloneNode(true));

    function totalPages() {
      return Math.ceil(rows.length / rowsPerPage);
    }

    function render() {
      tbody.textContent = "";
      var begin = (currentPage - 1) * rowsPerPage;
      rows.slice(begin, begin + rowsPerPage).forEach(function (rowData) {
        var tr = document.createElement("tr");
        rowData.forEach(function (cell) {
          var td = document.createElement("td");
          td.textContent = cell;
          tr.appendChild(td);
        });
        tbody.appendChild(tr);
      });
      var pages = totalPages();
      container.querySelectorAll(".rcd-page-info").forEach(function (el) {
        el.textContent = "Page " + currentPage + " of " + pages;
      });
      container.querySelectorAll(".rcd-prev-page").forEach(function (btn) {
        btn.disabled = currentPage === 1;
      });
      container.querySelectorAll(".rcd-next-page").forEach(function (btn) {
        btn.disabled = currentPage === pages || pages === 0;
      });
    }

    function isFiniteNumber(value) {
      return !isNaN(parseFloat(value)) && isFinite(value);
    }

    function compare(a, b) {
      if (isFiniteNumber(a) && isFiniteNumber(b)) {
        return parseFloat(a) - parseFloat(b);
      }
      return String(a).localeCompare(String(b));
    }

    function sortBy(columnIndex) {
      var direction = sortColumn === columnIndex && sortDirection === "asc" ? "desc" : "asc";
      rows.sort(function (a, b) {
        var result = compare(a[columnIndex], b[columnIndex]);
        return direction === "asc" ? result : -result;
      });
      sortColumn = columnIndex;
      sortDirection = direction;
      table.querySelectorAll("thead th").forEach(function (th, i) {
        th.classList.remove("sort-asc", "sort-desc");
        if (i === columnIndex) {
          th.classList.add("sort-" + direction);
        }
      });
      currentPage = 1;
      render();
    }

    container.querySelectorAll(".rcd-rows-per-page").forEach(function (select) {
      select.addEventListener("change", function (event) {
        rowsPerPage = parseInt(event.target.value, 10);
        currentPage = 1;
        container.querySelectorAll(".rcd-rows-per-page").forEach(function (other) {
          other.value = String(rowsPerPage);
        });
        render();
      });
    });
    container.querySelectorAll(".rcd-prev-page").forEach(function (btn) {
      btn.addEventListener("click", function () {
        if (currentPage > 1) {
          currentPage--;
          render();
        }
      });
    });
    container.querySelectorAll(".rcd-next-page").forEach(function (btn) {
      btn.addEventListener("click", function () {
        if (currentPage < totalPages()) {
          currentPage++;
          render();
        }
      });
    });
    table.querySelectorAll("thead th").forEach(function (th, i) {
      th.addEventListener("click", function () {
        sortBy(i);
      });
    });

    render();
  }

  if (document.readyState === "loading") {
    document.addEventListener("DOMContentLoaded", start);
  } else {
    start();
  }
})();
</script>
"""
