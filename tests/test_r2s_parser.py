import pytest

from lanemap.r2s_parser import (
    BorderDataR2SL,
    BorderDataR2SR,
    load_border_data_from_r2sl_file,
    load_border_data_from_r2sr_file,
    parse_border_data_r2sl,
    parse_border_data_r2sr,
    split_fields,
)

R2SR_ROW = '7,"LINESTRING (10.0 20.0,11.0 21.5)",driving,true,town,none,NULL,3,4,Main Street'
R2SL_ROW = "12,LINESTRING (1 2,3 4),driving,asphalt,NULL,7"


def test_split_fields_reference_row():
    fields = split_fields(R2SR_ROW)
    assert fields == [
        "7",
        "10.0 20.0,11.0 21.5",
        "driving",
        "true",
        "town",
        "none",
        "NULL",
        "3",
        "4",
        "Main Street",
    ]


def test_split_fields_removes_quotes_and_keeps_inner_empty_fields():
    fields = split_fields('1,LINESTRING (0 0,1 1),"a",,"b"')
    assert fields == ["1", "0 0,1 1", "a", "", "b"]


def test_split_fields_drops_trailing_empty_field():
    fields = split_fields("1,LINESTRING (0 0,1 1),a,b,")
    assert fields == ["1", "0 0,1 1", "a", "b"]


def test_split_fields_rejects_unrecognized_line():
    assert split_fields("not a row at all") == []


def test_parse_r2sr_row():
    data = parse_border_data_r2sr(split_fields(R2SR_ROW))
    assert data == BorderDataR2SR(
        id=7,
        streetname="Main Street",
        successor_id=4,
        predecessor_id=3,
        datasource_description_id=0,
        turn="none",
        category="town",
        oneway=True,
        linetype="driving",
        x=[10.0, 11.0],
        y=[20.0, 21.5],
    )


def test_parse_r2sl_row():
    data = parse_border_data_r2sl(split_fields(R2SL_ROW))
    assert data == BorderDataR2SL(
        id=12,
        parent_id=7,
        datasource_description_id=0,
        material="asphalt",
        linetype="driving",
        x=[1.0, 3.0],
        y=[2.0, 4.0],
    )


def test_parse_r2sl_with_spaced_coordinates():
    data = parse_border_data_r2sl(split_fields("5,LINESTRING (1 2, 3 4, 5 6),driving,concrete,9,2"))
    assert data.x == [1.0, 3.0, 5.0]
    assert data.y == [2.0, 4.0, 6.0]
    assert data.datasource_description_id == 9


def test_parse_r2sr_oneway_false_when_not_true():
    row = "7,LINESTRING (0 0,1 0),driving,false,rural,none,1,NULL,NULL,Side"
    data = parse_border_data_r2sr(split_fields(row))
    assert data.oneway is False
    assert data.predecessor_id == 0
    assert data.successor_id == 0


def test_parse_r2sl_bad_parent_raises():
    with pytest.raises(ValueError):
        parse_border_data_r2sl(["1", "0 0,1 1", "driving", "asphalt", "NULL", "abc"])


def test_parse_r2sr_bad_coordinates_raise():
    fields = ["1", "0", "driving", "true", "town", "none", "NULL", "NULL", "NULL", "X"]
    with pytest.raises(ValueError):
        parse_border_data_r2sr(fields)


def test_load_files_skip_header_and_handle_crlf(tmp_path):
    r2sr = tmp_path / "map.r2sr"
    r2sl = tmp_path / "map.r2sl"
    r2sr.write_bytes(("header\r\n" + R2SR_ROW + "\r\ngarbage\r\n").encode())
    r2sl.write_bytes(("header\r\n" + R2SL_ROW + "\r\n").encode())

    lines = load_border_data_from_r2sr_file(r2sr)
    boundaries = load_border_data_from_r2sl_file(r2sr)

    assert [line.id for line in lines] == [7]
    assert lines[0].streetname == "Main Street"
    assert [b.id for b in boundaries] == [12]
    assert boundaries[0].parent_id == 7


def test_load_skips_rows_with_too_few_fields(tmp_path):
    r2sl = tmp_path / "map.r2sl"
    r2sl.write_text("header\n1,LINESTRING (0 0,1 1),a,b\n" + R2SL_ROW + "\n")
    boundaries = load_border_data_from_r2sl_file(str(tmp_path / "map.r2sr"))
    assert [b.id for b in boundaries] == [12]


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_border_data_from_r2sr_file(tmp_path / "absent.r2sr")