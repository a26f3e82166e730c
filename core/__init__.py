"""Core (UI-agnostic) chart viewer logic.

This package contains:
- spreadsheet ingestion (XLSX/XLS/CSV -> normalized Dataset)
- index-column date coercion
- viewport (zoom/pan) controller and gesture dispatch
- per-chart series visibility and the chart workspace
- chart helpers (Altair -> Vega-Lite spec dict)
"""
