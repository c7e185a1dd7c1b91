import csv
import io
from datetime import date

from smcr_builder.csv_export import CSV_HEADERS, generate_csv_filename, generate_responsibilities_csv
from smcr_builder.smcr_catalog import get_responsibility_by_ref

from tests.conftest import make_individual


def parse(content):
    return list(csv.reader(io.StringIO(content)))


def test_rows_for_owned_and_pending():
    individuals = [make_individual("i1", 'Ana "AJ" Jones', ["SMF1 - Chief Executive"], email="ana@example.com")]
    content = generate_responsibilities_csv(
        [get_responsibility_by_ref("A"), get_responsibility_by_ref("O1")],
        {"A": "i1"},
        individuals,
    )
    rows = parse(content)

    assert rows[0] == CSV_HEADERS
    assert rows[1][0] == "A"
    assert rows[1][3] == "Yes"
    assert rows[1][4] == 'Ana "AJ" Jones'
    assert rows[1][5] == "SMF1 - Chief Executive"
    assert rows[1][6] == "ana@example.com"
    assert rows[1][7] == "Assigned"
    assert rows[2][3] == "No"
    assert rows[2][4:] == ["Unassigned", "-", "-", "Pending Assignment"]


def test_owner_missing_from_individuals_is_pending():
    rows = parse(generate_responsibilities_csv([get_responsibility_by_ref("D")], {"D": "gone"}, []))
    assert rows[1][-1] == "Pending Assignment"


def test_filename():
    assert generate_csv_filename("Acme & Sons Ltd.", date(2024, 3, 1)) == \
        "smcr-responsibilities-acme-sons-ltd-2024-03-01.csv"
    assert generate_csv_filename(None, date(2024, 3, 1)) == "smcr-responsibilities-firm-2024-03-01.csv"
