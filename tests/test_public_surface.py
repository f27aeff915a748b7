"""Test public API surface - ensure imports work and nothing shadows the exports."""


def test_api_exports_core_functions():
    """fixedrec.api is the programmatic entrypoint."""
    from fixedrec.api import run, decode_file, validate_schema, load_schema, load_code_table

    for func in (run, decode_file, validate_schema, load_schema, load_code_table):
        assert callable(func)


def test_root_exports():
    import fixedrec

    for name in fixedrec.__all__:
        assert hasattr(fixedrec, name), f"fixedrec.{name} missing"


def test_error_codes_are_strings():
    from fixedrec.codes import DecodeErrorCode, LoadErrorCode

    assert DecodeErrorCode.FIELD_OUT_OF_RANGE == "FIELD_OUT_OF_RANGE"
    assert LoadErrorCode.FILE_NOT_FOUND.value == "FILE_NOT_FOUND"
