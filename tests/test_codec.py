from datetime import date

import pytest

from codec import (
    LOCALES,
    decode_document,
    encode_document,
    escape_field,
    export_filename,
    format_amount,
    get_locale,
    read_import_file,
    split_row,
    write_export_file,
)
from errors import EmptyResultError, FormatError, InterchangeError
from models import LedgerDocument, Project, Transaction, TransactionType

HEADER = "Date,Description,Amount,Type,Category,Project"


def tx(tx_id, date, amount, tx_type, category, project_id, description=""):
    return Transaction(
        id=tx_id, date=date, amount=amount, type=tx_type,
        category=category, project_id=project_id, description=description,
    )


@pytest.fixture
def document():
    return LedgerDocument(
        transactions=[
            tx("1", "2024-01-01", 1500, TransactionType.INCOME, "Client Deposit", "p1", "First payment"),
            tx("2", "2024-01-02", 12.75, TransactionType.EXPENSE, "Tools", "p1", "Nails, 2in"),
            tx("3", "2024-01-03", 300, TransactionType.EXPENSE, "Labor", "gone", 'The "big" day'),
        ],
        projects=[Project(id="p1", name="Model House 45m2")],
    )


class TestEscape:
    def test_plain_value_is_bare(self):
        assert escape_field("Lumber") == "Lumber"

    def test_comma_is_quoted(self):
        assert escape_field("Nails, 2in") == '"Nails, 2in"'

    def test_quotes_are_doubled(self):
        assert escape_field('say "hi"') == '"say ""hi"""'

    def test_newline_is_quoted(self):
        assert escape_field("a\nb") == '"a\nb"'

    def test_none_is_empty(self):
        assert escape_field(None) == ""

    def test_amount_format(self):
        assert format_amount(1500.0) == "1500"
        assert format_amount(12.75) == "12.75"


class TestEncode:
    def test_header_and_rows(self, document):
        lines = encode_document(document).split("\n")
        assert lines[0] == HEADER
        assert lines[1] == "2024-01-01,First payment,1500,Income,Client Deposit,Model House 45m2"
        assert lines[2] == '2024-01-02,"Nails, 2in",12.75,Expense,Tools,Model House 45m2'

    def test_orphan_project_gets_placeholder(self, document):
        lines = encode_document(document).split("\n")
        assert lines[3] == '2024-01-03,"The ""big"" day",300,Expense,Labor,No project'

    def test_spanish_labels(self, document):
        text = encode_document(document, LOCALES["es"])
        assert text.split("\n")[0] == "Fecha,Descripción,Monto,Tipo,Categoría,Proyecto"
        assert ",Ingreso," in text
        assert "Sin Proyecto" in text

    def test_empty_document_is_header_only(self):
        assert encode_document(LedgerDocument()) == HEADER


class TestSplitRow:
    def test_simple(self):
        assert split_row("a,b,c") == ["a", "b", "c"]

    def test_quoted_comma(self):
        assert split_row('x,"Nails, 2in",y') == ["x", "Nails, 2in", "y"]

    def test_escaped_quote(self):
        assert split_row('"say ""hi""",z') == ['say "hi"', "z"]

    def test_empty_fields(self):
        assert split_row("a,,") == ["a", "", ""]


class TestDecode:
    def test_round_trip_preserves_rows(self, document):
        decoded = decode_document(encode_document(document))
        key = lambda t: (t.date, t.description, t.amount, t.type, t.category)
        assert sorted(map(key, decoded.transactions)) == sorted(map(key, document.transactions))

    def test_round_trip_comma_field(self, document):
        decoded = decode_document(encode_document(document))
        assert decoded.transactions[1].description == "Nails, 2in"

    def test_projects_are_minted_from_names(self, document):
        decoded = decode_document(encode_document(document))
        names = [p.name for p in decoded.projects]
        assert names == ["Model House 45m2", "No project"]
        assert "p1" not in [p.id for p in decoded.projects]
        by_id = {p.id: p.name for p in decoded.projects}
        assert by_id[decoded.transactions[0].project_id] == "Model House 45m2"
        assert by_id[decoded.transactions[2].project_id] == "No project"

    def test_categories_by_first_appearance(self):
        text = "\n".join([
            HEADER,
            "2024-01-01,,1,Expense,Tools,A",
            "2024-01-02,,1,Income,Deposit,A",
            "2024-01-03,,1,Expense,Labor,A",
            "2024-01-04,,1,Expense,Tools,A",
        ])
        decoded = decode_document(text)
        assert decoded.expense_categories == ["Tools", "Labor"]
        assert decoded.income_categories == ["Deposit"]

    def test_bad_amount_row_is_skipped(self):
        text = "\n".join([
            HEADER,
            "2024-01-01,ok,10,Income,Deposit,A",
            "2024-01-02,bad,ten,Expense,Tools,A",
            "2024-01-03,ok,5,Expense,Tools,A",
        ])
        decoded = decode_document(text)
        assert [t.date for t in decoded.transactions] == ["2024-01-01", "2024-01-03"]

    def test_other_bad_rows_are_skipped(self):
        text = "\n".join([
            HEADER,
            "2024-01-01,short,1,Income",
            ",no date,1,Income,Deposit,A",
            "2024-01-02,infinite,inf,Expense,Tools,A",
            "2024-01-03,nan,nan,Expense,Tools,A",
            "2024-01-04,good,7,Expense,Tools",
        ])
        decoded = decode_document(text)
        assert [t.description for t in decoded.transactions] == ["good"]
        assert decoded.projects[0].name == "No project"

    def test_amounts_are_unsigned(self):
        decoded = decode_document(HEADER + "\n2024-01-01,refund,-25.5,Expense,Tools,A")
        assert decoded.transactions[0].amount == 25.5

    def test_type_inference(self):
        text = "\n".join([
            HEADER,
            "2024-01-01,,1,INCOME received,Deposit,A",
            "2024-01-02,,1,Expense,Tools,A",
            "2024-01-03,,1,???,Tools,A",
            "2024-01-04,,1,,Tools,A",
        ])
        types = [t.type for t in decode_document(text).transactions]
        assert types == [
            TransactionType.INCOME,
            TransactionType.EXPENSE,
            TransactionType.EXPENSE,
            TransactionType.EXPENSE,
        ]

    def test_spanish_type_labels(self):
        text = "Fecha,Descripción,Monto,Tipo,Categoría,Proyecto\n2024-01-01,,1,Ingreso,Pago Final,Casa"
        decoded = decode_document(text, get_locale("es"))
        assert decoded.transactions[0].type is TransactionType.INCOME

    def test_blank_lines_and_whitespace_are_ignored(self):
        text = "\n\n  " + HEADER + "  \r\n\n2024-01-01,x,3,Expense,Tools,A\r\n   \n"
        decoded = decode_document(text)
        assert len(decoded.transactions) == 1
        assert decoded.transactions[0].project_id == decoded.projects[0].id

    def test_header_is_skipped_by_position(self):
        decoded = decode_document("whatever\n2024-01-01,x,3,Expense,Tools,A")
        assert len(decoded.transactions) == 1

    def test_header_only_fails(self):
        with pytest.raises(EmptyResultError):
            decode_document(HEADER + "\n")
        with pytest.raises(FormatError):
            decode_document(HEADER)

    def test_empty_text_is_format_error(self):
        with pytest.raises(FormatError):
            decode_document("   \n\n")

    def test_no_surviving_rows(self):
        with pytest.raises(EmptyResultError) as exc:
            decode_document(HEADER + "\nbad row\n2024-01-01,x,abc,Expense,Tools")
        assert not isinstance(exc.value, FormatError)
        assert isinstance(exc.value, InterchangeError)

    def test_decoded_ids_are_unique(self, document):
        decoded = decode_document(encode_document(document))
        ids = [t.id for t in decoded.transactions]
        assert len(set(ids)) == len(ids)


class TestFiles:
    def test_export_filename(self):
        assert export_filename(date(2024, 5, 6)) == "woodframe_records_2024-05-06.csv"

    def test_write_then_read(self, tmp_path, document):
        path = tmp_path / "backup.csv"
        assert write_export_file(str(path), document) == 3
        decoded = decode_document(read_import_file(str(path)))
        assert len(decoded.transactions) == 3
