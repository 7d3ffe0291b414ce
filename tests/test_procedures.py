from agents.reception.procedures import find_procedures
from agents.reception.reference import ProcedureRecord

CATALOG = (
    ProcedureRecord("Ultrassom Abdominal", "150"),
    ProcedureRecord("Endoscopia Digestiva Alta", "350"),
    ProcedureRecord("Ultrassom Transvaginal", "180"),
    ProcedureRecord("Ultrassom Abdominal", "170"),
)


def test_substring_match_is_case_insensitive():
    matches = find_procedures(CATALOG[:1], "ultrassom")
    assert matches == [ProcedureRecord("Ultrassom Abdominal", "150")]


def test_no_match_is_empty():
    assert find_procedures(CATALOG, "tomografia") == []


def test_catalog_order_and_duplicates_kept():
    names = [(p.name, p.price) for p in find_procedures(CATALOG, "  ULTRASSOM ")]
    assert names == [
        ("Ultrassom Abdominal", "150"),
        ("Ultrassom Transvaginal", "180"),
        ("Ultrassom Abdominal", "170"),
    ]


def test_match_inside_name():
    assert [p.name for p in find_procedures(CATALOG, "digestiva")] == ["Endoscopia Digestiva Alta"]


def test_match_law_holds_for_every_record():
    for query in ["ultra", "alta", "x", "abdominal", "ENDO"]:
        found = find_procedures(CATALOG, query)
        expected = [p for p in CATALOG if query.strip().lower() in p.name.strip().lower()]
        assert found == expected
