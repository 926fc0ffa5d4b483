from __future__ import annotations

from safebind.decls import EnumValue
from safebind.enums import DUMMY_VARIANT, prepare_enum_values


def _names(*names: str) -> list[str]:
    values = [EnumValue(name=n, value=i + 1) for i, n in enumerate(names)]
    return [v.name for v in prepare_enum_values(values)]


def test_simple_values_are_class_cased():
    r = prepare_enum_values([EnumValue("var1", 1), EnumValue("other_var2", 2)])
    assert [(v.name, v.value) for v in r] == [("Var1", 1), ("OtherVar2", 2)]


def test_duplicate_values_become_aliases():
    r = prepare_enum_values([EnumValue("var1", 1), EnumValue("other_var2", 2), EnumValue("other_var_dup", 2)])
    assert [(v.name, v.value) for v in r] == [("Var1", 1), ("OtherVar2", 2)]
    assert r[1].source_names == ("other_var2", "other_var_dup")


def test_common_prefix_and_suffix_are_stripped():
    assert _names("OptionGood", "OptionBad", "OptionNecessaryEvil") == ["Good", "Bad", "NecessaryEvil"]
    assert _names("BestFriend", "GoodFriend", "NoFriend") == ["Best", "Good", "No"]
    assert _names("PreciseTimer", "CoarseTimer") == ["Precise", "Coarse"]


def test_stripping_is_aborted_for_empty_or_numeric_names():
    assert _names("NonRecursive", "Recursive") == ["NonRecursive", "Recursive"]
    assert _names("Base32", "Base64") == ["Base32", "Base64"]


def test_single_value_gets_dummy_variant():
    r = prepare_enum_values([EnumValue("Only", 0)])
    assert [(v.name, v.value, v.is_dummy) for v in r] == [("Only", 0, False), (DUMMY_VARIANT, 1, True)]

    r = prepare_enum_values([EnumValue("Only", 5)])
    assert [(v.name, v.value) for v in r] == [(DUMMY_VARIANT, 0), ("Only", 5)]


def test_values_are_sorted_and_sanitized():
    r = prepare_enum_values([EnumValue("B", 2), EnumValue("A", -1), EnumValue("type", 7)])
    assert [v.value for v in r] == [-1, 2, 7]
    assert r[2].name == "Type"
