from __future__ import annotations

import pytest

from builders import arg, class_type, function, heap_class, method, stack_class, this_arg


def _qt_core() -> dict:
    return {
        "types": [
            stack_class("QPoint", "QPoint", doc="Point in the plane.\nUses integer precision."),
            heap_class("QObject", "QObject"),
            heap_class("QTimer", "QTimer"),
        ],
        "methods": [
            method(
                "QPoint", "QPoint", "QPoint",
                is_constructor=True, return_type=class_type("QPoint"), allocation_place="stack", c_name="QPoint_new",
            ),
            method(
                "QPoint", "QPoint", "QPoint", arg("xpos", "int", 0), arg("ypos", "int", 1),
                is_constructor=True, return_type=class_type("QPoint"), allocation_place="stack", c_name="QPoint_new1",
            ),
            method("QPoint", "x", "QPoint", this_arg("QPoint", is_const=True), return_type="int", is_const=True, c_name="QPoint_x"),
            method("QPoint", "setX", "QPoint", this_arg("QPoint"), arg("x", "int", 0), c_name="QPoint_setX"),
            method("QPoint", "data", "QPoint", this_arg("QPoint", is_const=True), return_type="int", c_name="QPoint_data"),
            method("QPoint", "data", "QPoint", this_arg("QPoint"), return_type="int", c_name="QPoint_data1"),
            method(
                "QPoint", "~QPoint", "QPoint", this_arg("QPoint"),
                is_destructor=True, allocation_place="stack", c_name="QPoint_delete",
            ),
            method(
                "QObject", "~QObject", "QObject", this_arg("QObject"),
                is_destructor=True, allocation_place="heap", c_name="QObject_delete",
            ),
            function("qMax", "QtGlobal", arg("a", "int", 0), arg("b", "int", 1), return_type="int", c_name="qMax_int"),
            function(
                "qMax", "QtGlobal", arg("a", "double", 0), arg("b", "double", 1), return_type="double",
                c_name="qMax_double",
            ),
            function("globalPoint", "QPoint", return_type=class_type("QPoint", "ref", is_const=True), c_name="globalPoint"),
            function(
                "static_cast", "QTimer", arg("ptr", class_type("QTimer", "ptr"), 0),
                return_type=class_type("QObject", "ptr"), cast={"kind": "static", "is_direct": True},
                c_name="QTimer_static_cast_QObject",
            ),
            method("QFoo", "bar", "QPoint", this_arg("QFoo"), c_name="QFoo_bar"),
        ],
    }


def _module(out, full_name: str):
    for top in out.modules:
        for m in top.walk():
            if str(m.name) == full_name:
                return m
    raise AssertionError(f"module not found: {full_name}")


def _type(module, last_name: str):
    for d in module.types:
        if d.name.last_name == last_name:
            return d
    raise AssertionError(f"type not found: {last_name}")


def test_top_level_modules_and_docs(run_projection):
    out = run_projection(_qt_core())
    assert [str(m.name) for m in out.modules] == [
        "qt_core::global",
        "qt_core::object",
        "qt_core::point",
        "qt_core::timer",
    ]
    assert _module(out, "qt_core::global").doc == "Entities from `QtGlobal` C++ header"
    # The type named after the header lends its summary line.
    assert _module(out, "qt_core::point").doc == "Point in the plane."


def test_type_methods_are_projected_and_sorted(run_projection):
    out = run_projection(_qt_core())
    point = _type(_module(out, "qt_core::point"), "Point")
    assert [m.name.last_name for m in point.methods] == ["data", "data_mut", "new", "set_x", "x"]

    x = next(m for m in point.methods if m.name.last_name == "x")
    assert x.variant is not None
    assert x.variant.signature_text("x") == "fn x(&self) -> libc::c_int"
    assert not x.is_unsafe
    assert x.variant_docs[0].source_signature == "QPoint::x"


def test_overloaded_constructors_get_an_overload_trait(run_projection):
    from safebind.modules import DeclarationKind

    out = run_projection(_qt_core())
    point = _type(_module(out, "qt_core::point"), "Point")
    new = next(m for m in point.methods if m.name.last_name == "new")
    assert new.variant is None
    assert new.overloaded is not None
    assert new.overloaded.params_trait_name == "PointNewArgs"
    assert new.overloaded.common_return_type.to_text() == "qt_core::point::Point"
    assert [d.target_signatures for d in new.variant_docs] == [
        ("fn new() -> qt_core::point::Point",),
        ("fn new(xpos: libc::c_int, ypos: libc::c_int) -> qt_core::point::Point",),
    ]

    overloading = _module(out, "qt_core::point::overloading")
    trait = _type(overloading, "PointNewArgs")
    assert trait.kind is DeclarationKind.OVERLOAD_TRAIT
    assert len(trait.overload_trait.impls) == 2
    assert trait.overload_trait.lifetime is None


def test_free_function_overloads(run_projection):
    out = run_projection(_qt_core())
    global_ = _module(out, "qt_core::global")
    assert [str(f.name) for f in global_.functions] == ["qt_core::global::max"]
    assert global_.functions[0].overloaded.params_trait_name == "MaxArgs"
    # Return types differ, so the dispatcher has no common one.
    assert global_.functions[0].overloaded.common_return_type is None
    assert [str(t.name) for t in _module(out, "qt_core::global::overloading").types] == [
        "qt_core::global::overloading::MaxArgs"
    ]


def test_destructors_become_cleanup_capabilities(run_projection):
    out = run_projection(_qt_core())
    point = _type(_module(out, "qt_core::point"), "Point")
    assert [i.trait_type.to_text() for i in point.trait_impls] == ["Drop"]
    assert [m.name.last_name for m in point.trait_impls[0].methods] == ["drop"]

    obj = _type(_module(out, "qt_core::object"), "Object")
    assert [i.trait_type.to_text() for i in obj.trait_impls] == ["cpp_utils::CppDeletable"]
    assert obj.trait_impls[0].deleter_name == "QObject_delete"
    assert obj.trait_impls[0].methods == ()


def test_allocation_override_drives_returns_and_cleanup(run_projection):
    from safebind.config import ProjectorConfig
    from safebind.decls import AllocationPlace
    from safebind.target import ApiConversion

    config = ProjectorConfig(
        crate_name="qt_core",
        prefixes_to_remove=("q", "Q", "Qt"),
        type_allocation_places={"QPoint": AllocationPlace.HEAP},
    )
    out = run_projection(_qt_core(), config=config)
    info = out.registry.get("QPoint")
    assert info.allocation_place is AllocationPlace.HEAP
    assert info.size_const_name is None

    point = _type(_module(out, "qt_core::point"), "Point")
    new = next(m for m in point.methods if m.name.last_name == "new")
    assert new.overloaded.common_return_type.to_text() == "cpp_utils::CppBox<qt_core::point::Point>"
    (trait,) = _module(out, "qt_core::point::overloading").types
    conversions = {impl.variant.return_type.api_conversion for impl in trait.overload_trait.impls}
    assert conversions == {ApiConversion.OWNING_HANDLE_TO_PTR}

    assert [i.trait_type.to_text() for i in point.trait_impls] == ["cpp_utils::CppDeletable"]
    assert point.trait_impls[0].deleter_name == "QPoint_delete"


def test_static_cast_gives_cast_and_deref_capabilities(run_projection):
    out = run_projection(_qt_core())
    timer = _module(out, "qt_core::timer")
    assert timer.functions == []
    assert [i.trait_type.to_text() for i in timer.trait_impls] == [
        "cpp_utils::StaticCast<qt_core::object::Object>",
        "std::ops::Deref",
        "std::ops::DerefMut",
    ]
    cast, deref, _ = timer.trait_impls
    assert cast.target_type.to_text() == "qt_core::timer::Timer"
    assert [m.name.last_name for m in cast.methods] == ["static_cast", "static_cast_mut"]
    assert cast.methods[0].variant.return_type.api_type.to_text() == "&qt_core::object::Object"
    assert cast.methods[1].variant.return_type.api_type.to_text() == "&mut qt_core::object::Object"
    assert [(t.name, t.value.to_text()) for t in deref.associated_types] == [("Target", "qt_core::object::Object")]


def test_reference_without_reference_arguments_is_static_and_warned(run_projection):
    from safebind.diagnostics import Severity

    out = run_projection(_qt_core())
    point_module = _module(out, "qt_core::point")
    f = next(f for f in point_module.functions if f.name.last_name == "global_point")
    assert f.variant.assumed_static_lifetime
    assert f.variant.return_type.api_type.to_text() == "&'static qt_core::point::Point"
    warnings = out.diagnostics.of(Severity.WARNING)
    assert [w.entity for w in warnings] == ["globalPoint"]


def test_methods_of_unregistered_classes_are_dropped(run_projection):
    from safebind.diagnostics import Severity

    out = run_projection(_qt_core())
    skips = out.diagnostics.of(Severity.SKIP)
    assert any(d.entity == "QFoo::bar" and "not registered" in d.message for d in skips)
    assert all(d.name != "QFoo_bar" for ds in out.call_descriptors.values() for d in ds)


def test_call_descriptors_per_unit(run_projection):
    out = run_projection(_qt_core())
    assert list(out.call_descriptors) == ["QObject", "QPoint", "QTimer", "QtGlobal"]
    by_name = {d.name: d for d in out.call_descriptors["QPoint"]}
    x = by_name["QPoint_x"]
    assert [(a.name, a.call_type.to_text()) for a in x.arguments] == [("this", "*const qt_core::point::Point")]
    assert x.return_type.to_text() == "libc::c_int"
    new1 = by_name["QPoint_new1"]
    assert new1.return_type.to_text() == "*mut qt_core::point::Point"


def test_skipped_methods_get_no_call_descriptor(run_projection):
    from safebind.diagnostics import Severity

    out = run_projection(
        {
            "types": [stack_class("QPoint", "QPoint")],
            "methods": [
                function(
                    "qOrigin", "QPoint",
                    {"name": "output", "role": "out_return", "type": {"base": "int", "indirection": "ptr"}},
                    return_type="int", c_name="qOrigin_bad",
                ),
                function("qOrigin", "QPoint", arg("scale", "int", 0), return_type="int", c_name="qOrigin_scaled"),
            ],
        }
    )
    assert [d.name for d in out.call_descriptors["QPoint"]] == ["qOrigin_scaled"]
    (skip,) = out.diagnostics.of(Severity.SKIP)
    assert "must return void" in skip.message


def test_projection_is_deterministic(run_projection):
    decls = _qt_core()
    first = run_projection(decls)
    shuffled = {"types": list(reversed(decls["types"])), "methods": list(reversed(decls["methods"]))}
    second = run_projection(shuffled)
    assert first.modules == second.modules
    assert first.call_descriptors == second.call_descriptors
    assert [i.key for i in first.registry] == [i.key for i in second.registry]


def test_run_wide_failure_raises_with_diagnostics(run_projection):
    from safebind.diagnostics import Severity
    from safebind.errors import ProjectionFailedError

    decls = {
        "types": [
            {
                "name": "QList",
                "kind": "template_instantiation",
                "include_file": "QList",
                "template_arguments": [class_type("QFoo")],
            }
        ]
    }
    with pytest.raises(ProjectionFailedError, match=r"QFoo") as info:
        run_projection(decls)
    assert [d.severity for d in info.value.diagnostics] == [Severity.FATAL]


def test_colliding_type_names_are_skipped(run_projection):
    from safebind.diagnostics import Severity

    out = run_projection({"types": [stack_class("QPoint", "QPoint"), stack_class("Point", "QPoint")]})
    assert [i.cpp_name for i in out.registry] == ["Point"]
    skips = out.diagnostics.of(Severity.SKIP)
    assert [d.entity for d in skips] == ["QPoint"]
    assert "both map to qt_core::point::Point" in skips[0].message


def test_dependency_registry_resolves_foreign_types(run_projection):
    from safebind.config import ProjectorConfig

    core = run_projection(_qt_core())
    gui_config = ProjectorConfig(crate_name="qt_gui", prefixes_to_remove=("q", "Q", "Qt"))
    gui = run_projection(
        {
            "types": [heap_class("QWindow", "QWindow")],
            "methods": [
                method(
                    "QWindow", "setPosition", "QWindow", this_arg("QWindow"),
                    arg("pt", class_type("QPoint", "ref", is_const=True), 0), c_name="QWindow_setPosition",
                )
            ],
        },
        config=gui_config,
        dependencies=(core.registry,),
    )
    window = _type(_module(gui, "qt_gui::window"), "Window")
    (set_position,) = window.methods
    assert set_position.variant.signature_text("set_position") == (
        "fn set_position(&mut self, pt: &qt_core::point::Point)"
    )
    assert [str(i.target_name) for i in gui.registry] == ["qt_gui::window::Window"]
