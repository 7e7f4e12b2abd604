"""
Tests for console and CSV reports.

Run with: pytest pupitre/material_lists/tests/test_report.py -v
"""

import csv
import io

import pytest

from pupitre.material_lists.availability import AvailabilityReconciler, ReconcileResult
from pupitre.material_lists.models import MaterialVersion
from pupitre.material_lists.report import export_csv, format_console, generate_report_filename
from pupitre.material_lists.search import SearchIndexer


@pytest.fixture
def reconciled(versions, curso, catalog, internal):
    return AvailabilityReconciler(versions, catalog, internal).verify_availability(curso)


class TestFormatConsole:

    def test_groups_and_summary(self, reconciled):
        output = format_console(reconciled)

        assert "NOT FOUND (1)" in output
        assert "OUT OF STOCK (1)" in output
        assert "AVAILABLE (1)" in output
        assert "Total items:     3" in output
        assert "PARTIAL" not in output

    def test_empty(self):
        assert format_console(ReconcileResult(version=MaterialVersion(), items=[])) == "No materials to report.\n"


class TestExportCsv:

    def test_rows_and_output_handle(self, store):
        result = SearchIndexer(store).search_across_lists("cuaderno universitario")
        handle = io.StringIO()

        content = export_csv(result, handle)

        rows = list(csv.reader(io.StringIO(content)))
        assert rows[0][0] == "colegio"
        assert rows[1][0] == "Colegio San Martín"
        assert rows[1][-1] == "60"
        assert handle.getvalue() == content

    def test_filename(self):
        name = generate_report_filename("Cuaderno Universitario")
        assert name.startswith("busqueda_cuaderno_universitario_")
        assert name.endswith(".csv")
