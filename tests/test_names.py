from __future__ import annotations

import pytest

from safebind.errors import UnresolvedReferenceError
from safebind.names import (
    NameResolver,
    include_file_to_module_name,
    operator_name,
    remove_prefix_and_convert_case,
    sanitize_identifier,
    size_const_name,
)
from safebind.target import TargetName
from safebind.words import Case, class_case, snake_case, split_words

QT = ("q", "Q", "Qt")


def test_split_words_camel_case_and_digits():
    assert split_words("QPointF") == ["Q", "Point", "F"]
    assert split_words("Qt3DWindow") == ["Qt", "3D", "Window"]
    assert split_words("myFunc1") == ["my", "Func1"]
    assert split_words("other_var2") == ["other", "var2"]
    assert split_words("XMLHttpRequest") == ["XML", "Http", "Request"]


def test_case_conversion():
    assert snake_case("Qt3DWindow") == "qt_3d_window"
    assert class_case("Qt3DWindow") == "Qt3DWindow"
    assert class_case("other_var2") == "OtherVar2"
    assert snake_case("QDirIterator") == "q_dir_iterator"


def test_remove_prefix_and_convert_case():
    assert remove_prefix_and_convert_case("OneTwo", Case.CLASS, ()) == "OneTwo"
    assert remove_prefix_and_convert_case("OneTwo", Case.SNAKE, QT) == "one_two"
    assert remove_prefix_and_convert_case("QDirIterator", Case.CLASS, ()) == "QDirIterator"
    assert remove_prefix_and_convert_case("QDirIterator", Case.CLASS, QT) == "DirIterator"
    assert remove_prefix_and_convert_case("QDirIterator", Case.SNAKE, QT) == "dir_iterator"
    # The prefix stays when only a number would remain after it.
    assert remove_prefix_and_convert_case("Qt3DWindow", Case.CLASS, QT) == "Qt3DWindow"
    assert remove_prefix_and_convert_case("Qt3DWindow", Case.SNAKE, QT) == "qt_3d_window"


def test_include_file_to_module_name():
    assert include_file_to_module_name("QtGlobal", QT) == "global"
    assert include_file_to_module_name("QtCore/qstring.h", QT) == "qstring"
    assert include_file_to_module_name("QPointF", QT) == "point_f"


def test_sanitize_identifier_escapes_reserved_words():
    assert sanitize_identifier("type") == "type_"
    assert sanitize_identifier("match") == "match_"
    assert sanitize_identifier("value") == "value"


def test_operator_names():
    assert operator_name("add") == "op_add"
    assert operator_name("conversion", "i32") == "as_i32"
    with pytest.raises(UnresolvedReferenceError):
        operator_name("conversion")


def test_size_const_name():
    assert size_const_name(TargetName(("qt_core", "point_f", "PointF"))) == "QT_CORE_POINT_F_POINT_F"


def _resolver(*units: str) -> NameResolver:
    return NameResolver.for_units(crate_name="qt_core", units=list(units), prefixes=QT)


def test_resolve_names():
    names = _resolver("QtGlobal", "QPointF", "QStringList", "QString", "QRect")
    assert names.resolve("myFunc1", "QtGlobal", is_function=True).parts == ("qt_core", "global", "my_func1")
    assert names.resolve("QPointF", "QPointF", is_function=False).parts == ("qt_core", "point_f", "PointF")
    assert names.resolve("QStringList::Iterator", "QStringList", is_function=False).parts == (
        "qt_core",
        "string_list",
        "Iterator",
    )
    assert names.resolve("QStringList::Iterator", "QString", is_function=False).parts == (
        "qt_core",
        "string",
        "string_list",
        "Iterator",
    )
    assert names.resolve("ns::func1", "QRect", is_function=True).parts == ("qt_core", "rect", "ns", "func1")


def test_resolve_drops_filtered_namespaces():
    names = NameResolver.for_units(
        crate_name="qt_core", units=["QRect"], prefixes=QT, filtered_namespaces=("QtPrivate",)
    )
    assert names.resolve("QtPrivate::helper", "QRect", is_function=True).parts == ("qt_core", "rect", "helper")


def test_resolve_operator_uses_operator_name():
    names = _resolver("QString")
    name = names.resolve("operator+", "QString", is_function=True, operator="add")
    assert name.parts == ("qt_core", "string", "op_add")


def test_unknown_unit_is_unresolved():
    names = _resolver("QString")
    with pytest.raises(UnresolvedReferenceError, match=r"QFoo"):
        names.resolve("QFoo", "QFoo", is_function=False)


def test_target_name_relative_full_name():
    name = TargetName.of("qt_core::string::String")
    assert name.full_name(TargetName.of("qt_core::string")) == "String"
    assert name.full_name(TargetName.of("qt_core::rect")) == "qt_core::string::String"
    assert TargetName.of("qt_core").includes_directly(TargetName.of("qt_core::string"))
    assert not TargetName.of("qt_core").includes_directly(name)
