from toolcall_llm.agent import MalformedArguments, extract_arguments, type_fields, type_value


def test_extract_arguments_types_every_json_kind():
    args = extract_arguments(
        '{"text": "hi", "count": 3, "ratio": 0.5, "flag": true, "off": false, '
        '"missing": null, "items": [1, 2], "nested": {"k": 1}}'
    )

    assert args == {
        "text": "hi",
        "count": 3.0,
        "ratio": 0.5,
        "flag": True,
        "off": False,
        "items": "[1, 2]",
        "nested": '{"k": 1}',
    }
    assert isinstance(args["count"], float)
    assert "missing" not in args


def test_extract_arguments_reports_invalid_json():
    result = extract_arguments('{"message": "unterminated')

    assert isinstance(result, MalformedArguments)
    assert result.raw == '{"message": "unterminated'
    assert "Invalid JSON" in result.reason


def test_extract_arguments_rejects_non_object():
    result = extract_arguments("[1, 2, 3]")

    assert isinstance(result, MalformedArguments)
    assert "list" in result.reason


def test_blank_payload_means_no_arguments():
    assert extract_arguments("") == {}
    assert extract_arguments("   ") == {}
    assert extract_arguments("{}") == {}


def test_type_value_keeps_booleans_apart_from_numbers():
    assert type_value(True) is True
    assert type_value(1) == 1.0 and type_value(1) is not True
    assert type_value(None) is None
    assert type_value(["a"]) == '["a"]'


def test_type_fields_drops_nulls():
    assert type_fields({"a": None, "b": "x"}) == {"b": "x"}
