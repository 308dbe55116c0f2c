import pytest

from routemate.core.exceptions import ValidationError
from routemate.models.stops import StopInput
from routemate.services.normalizer import AddressNormalizer, ColumnRule, read_csv_records


def roles(stops):
    return [(s.address, s.sequence, s.is_start_point, s.is_end_point) for s in stops]


def test_manual_input_tags_start_and_end_with_sequences():
    normalizer = AddressNormalizer()

    stops = normalizer.normalize_manual(
        StopInput(address="A"),
        [StopInput(address="B", note="ring twice")],
        StopInput(address="C"),
    )

    assert roles(stops) == [
        ("A", 0, True, False),
        ("B", 1, False, False),
        ("C", 2, False, True),
    ]
    assert stops[1].note == "ring twice"


def test_manual_input_keeps_waypoint_order():
    waypoints = [StopInput(address=name) for name in ["W1", "W2", "W3", "W4"]]

    stops = AddressNormalizer().normalize_manual(StopInput(address="S"), waypoints, StopInput(address="E"))

    assert [s.address for s in stops] == ["S", "W1", "W2", "W3", "W4", "E"]
    assert [s.sequence for s in stops] == list(range(6))
    assert [s.is_start_point for s in stops].count(True) == 1
    assert [s.is_end_point for s in stops].count(True) == 1


def test_manual_input_rejects_blank_address():
    with pytest.raises(ValidationError):
        AddressNormalizer().normalize_manual(StopInput(address="A"), [StopInput(address="   ")], StopInput(address="C"))


def test_records_without_role_columns_use_first_and_last():
    stops = AddressNormalizer().normalize_records([{"address": "X"}, {"address": "Y"}, {"address": "Z"}])

    assert roles(stops) == [
        ("X", 0, True, False),
        ("Y", 1, False, False),
        ("Z", 2, False, True),
    ]


def test_single_record_is_both_start_and_end():
    stops = AddressNormalizer().normalize_records([{"Address": "Only stop"}])

    assert roles(stops) == [("Only stop", 0, True, True)]


def test_columns_are_matched_case_insensitively_and_in_chinese():
    records = [
        {"Delivery ADDRESS": "台北101", "備註": "loading dock"},
        {"地址": "台北車站", "說明": ""},
    ]

    stops = AddressNormalizer().normalize_records(records)

    assert [s.address for s in stops] == ["台北101", "台北車站"]
    assert stops[0].note == "loading dock"


def test_explicit_role_tags_override_positional_defaults():
    records = [
        {"address": "A", "start": "", "end": ""},
        {"address": "B", "start": "YES", "end": ""},
        {"address": "C", "start": "", "end": "終點"},
        {"address": "D", "start": "no", "end": "0"},
    ]

    stops = AddressNormalizer().normalize_records(records)

    assert [s.address for s in stops if s.is_start_point] == ["B"]
    assert [s.address for s in stops if s.is_end_point] == ["C"]


def test_explicit_end_on_first_row_moves_default_start():
    stops = AddressNormalizer().normalize_records(
        [{"address": "A", "is end": "y"}, {"address": "B"}, {"address": "C"}]
    )

    assert [s.address for s in stops if s.is_start_point] == ["B"]
    assert [s.address for s in stops if s.is_end_point] == ["A"]


def test_duplicate_start_tags_keep_only_the_first():
    records = [
        {"address": "A", "起點": "true"},
        {"address": "B", "起點": "1"},
        {"address": "C", "起點": ""},
    ]

    stops = AddressNormalizer().normalize_records(records)

    assert [s.is_start_point for s in stops] == [True, False, False]
    assert stops[-1].is_end_point


def test_row_tagged_start_and_end_keeps_only_the_start():
    records = [
        {"address": "A", "start": "y", "end": "y"},
        {"address": "B", "start": "", "end": ""},
        {"address": "C", "start": "", "end": ""},
    ]

    stops = AddressNormalizer().normalize_records(records)

    assert roles(stops) == [("A", 0, True, False), ("B", 1, False, False), ("C", 2, False, True)]


def test_rows_without_address_are_discarded():
    records = [{"address": "  "}, {"address": "A"}, {"note": "orphan note"}, {"address": "B"}]

    stops = AddressNormalizer().normalize_records(records)

    assert roles(stops) == [("A", 0, True, False), ("B", 1, False, True)]


def test_no_usable_rows_raises_validation_error():
    with pytest.raises(ValidationError, match="no usable address rows"):
        AddressNormalizer().normalize_records([{"address": ""}, {"name": "nobody"}])


def test_custom_rules_extend_synonyms():
    rules = [
        ColumnRule("address", ("adresse", "address")),
        ColumnRule("note", ("remarque",)),
    ]

    stops = AddressNormalizer(rules).normalize_records(
        [{"Adresse": "Paris", "Remarque": "gare"}, {"Adresse": "Lyon", "Remarque": ""}]
    )

    assert [(s.address, s.note) for s in stops] == [("Paris", "gare"), ("Lyon", "")]


def test_first_rule_claims_a_column():
    normalizer = AddressNormalizer()

    resolved = normalizer.resolve_columns(["Start Address", "End note", "Weight"])

    assert resolved["Start Address"].field == "address"
    assert resolved["End note"].field == "note"
    assert "Weight" not in resolved


def test_read_csv_records_handles_bom_blank_lines_and_whitespace():
    content = "\ufeffAddress,Note\n台北101, tower \n\n 台北車站 ,\n,\n".encode("utf-8")

    records = read_csv_records(content)

    assert records == [
        {"Address": "台北101", "Note": "tower"},
        {"Address": "台北車站", "Note": ""},
    ]


def test_read_csv_records_rejects_header_only_file():
    with pytest.raises(ValidationError):
        read_csv_records(b"address,note\n")


def test_read_csv_records_rejects_non_utf8():
    with pytest.raises(ValidationError, match="UTF-8"):
        read_csv_records("地址\n台北".encode("big5"))
