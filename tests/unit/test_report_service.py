# tests/unit/test_report_service.py
import asyncio

import pytest
from conftest import TODAY, StubSuggestions, make_med

from medstock.domain.errors import ValidationError
from medstock.services.report_service import (
    EMPTY_INVENTORY_MESSAGE, ReportService, format_brl, format_date_br,
)

svc = ReportService()


def test_format_helpers():
    assert format_brl(1234.5) == "R$ 1.234,50"
    assert format_brl(0) == "-"
    assert format_date_br("2026-03-05") == "05/03/2026"
    assert format_date_br(None) == "-"
    assert format_date_br("2026-02-30") == "-"


def test_empty_inventory_message():
    assert svc.render([]) == EMPTY_INVENTORY_MESSAGE


def test_column_selection_is_validated():
    with pytest.raises(ValidationError):
        svc.render([make_med("a")], columns=[])
    with pytest.raises(ValidationError):
        svc.render([make_med("a")], columns=["name", "colour"])


def test_default_table_sorted_by_expiration():
    snapshot = [
        make_med("a", name="Sem validade", quantity=2),
        make_med("b", name="Vencido", quantity=1, expirationDate="2026-10-01"),
        make_med("c", name="Logo", quantity=7, expirationDate="2026-11-10"),
    ]
    lines = svc.render(snapshot, ref=TODAY).splitlines()
    assert lines[0] == "| Nome do Medicamento | Quantidade | Data de Validade | Status de Vencimento |"
    assert lines[1] == "| --- | --- | --- | --- |"
    assert lines[2] == "| Vencido | 1 | 01/10/2026 | Vencido |"
    assert lines[3] == "| Logo | 7 | 10/11/2026 | Vence < 30d |"
    assert lines[4] == "| Sem validade | 2 | - | N/A |"


def test_custom_columns_escape_pipes():
    snapshot = [make_med("a", name="A | B", pmc=19.9, manufacturer=None)]
    out = svc.render(snapshot, columns=["name", "manufacturer", "pmc"], ref=TODAY)
    assert out.splitlines()[-1] == "| A \\| B | - | R$ 19,90 |"


def _generate(service, snapshot, **kw):
    return asyncio.run(service.generate(snapshot, ref=TODAY, **kw))


def test_generate_uses_assistant_table():
    table = "```markdown\n| Nome do Medicamento |\n| --- |\n| Dipirona |\n```"
    port = StubSuggestions(report=table)
    snapshot = [make_med("a", name="Dipirona"), make_med("b", name="Antes", expirationDate="2026-11-01")]

    md, source = _generate(ReportService(port), snapshot, columns=["name"], assisted=True)
    assert source == "assistant"
    assert md == "| Nome do Medicamento |\n| --- |\n| Dipirona |"
    records, columns, today = port.report_args
    assert [r["name"] for r in records] == ["Antes", "Dipirona"]
    assert columns == ["Nome do Medicamento"]
    assert today == "2026-10-19"


@pytest.mark.parametrize("port", [
    StubSuggestions(report=""),
    StubSuggestions(report="Desculpe, não consigo."),
    StubSuggestions(fail=True),
    None,
])
def test_generate_falls_back_to_local(port):
    snapshot = [make_med("a", name="Dipirona")]
    local = ReportService().render(snapshot, ref=TODAY)
    assert _generate(ReportService(port), snapshot, assisted=True) == (local, "local")


def test_generate_is_local_unless_asked():
    port = StubSuggestions(report="| x |")
    snapshot = [make_med("a")]
    assert _generate(ReportService(port), snapshot)[1] == "local"
    assert _generate(ReportService(port), [], assisted=True) == (EMPTY_INVENTORY_MESSAGE, "local")
    with pytest.raises(ValidationError):
        _generate(ReportService(port), snapshot, columns=["colour"], assisted=True)
    assert port.calls == []
