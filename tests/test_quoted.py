import pytest

from fynetools.quoted import StringsFlag, split_quoted_fields


def test_split_plain_fields():
    assert split_quoted_fields("-a -b  -c") == ["-a", "-b", "-c"]


def test_split_quoted_fields():
    assert split_quoted_fields("-x \"b c\" 'd e'") == ["-x", "b c", "d e"]


def test_split_all_whitespace_kinds():
    assert split_quoted_fields("\t one\r\ntwo \n") == ["one", "two"]


def test_split_empty():
    assert split_quoted_fields("") == []
    assert split_quoted_fields("   ") == []


def test_inner_quotes_do_not_count():
    assert split_quoted_fields('a"b c') == ['a"b', "c"]


def test_no_unescaping_inside_quotes():
    assert split_quoted_fields('"a\\b"') == ["a\\b"]


def test_empty_quoted_field():
    assert split_quoted_fields("'' x") == ["", "x"]


def test_unterminated_double_quote():
    with pytest.raises(ValueError, match='unterminated " string'):
        split_quoted_fields('a "b c')


def test_unterminated_single_quote():
    with pytest.raises(ValueError, match="unterminated ' string"):
        split_quoted_fields("'abc")


def test_strings_flag_set():
    flag = StringsFlag()
    flag.set("-ldflags '-s -w'")
    assert flag.values == ["-ldflags", "-s -w"]
    assert list(flag) == flag.values


def test_strings_flag_set_empty_gives_empty_list():
    flag = StringsFlag(["old"])
    flag.set("")
    assert flag.values == []


def test_strings_flag_set_error_clears_values():
    flag = StringsFlag(["old"])
    with pytest.raises(ValueError):
        flag.set('"broken')
    assert flag.values == []


def test_strings_flag_str():
    assert str(StringsFlag(["a"])) == "<stringsFlag>"