from __future__ import annotations

from builders import arg, class_type, function, method, stack_class, this_arg


def _names(functions) -> list[str]:
    return [f.name.last_name for f in functions]


def _global_functions(out):
    (global_,) = [m for m in out.modules if m.last_name == "global"]
    return global_.functions


def test_indistinguishable_argument_types_are_captioned_by_index(run_projection):
    out = run_projection(
        {
            "methods": [
                function("qAbs", "QtGlobal", arg("v", "long", 0), return_type="long", c_name="qAbs_long"),
                function("qAbs", "QtGlobal", arg("v", "int", 0), return_type="int", c_name="qAbs_int"),
            ]
        }
    )
    functions = _global_functions(out)
    assert _names(functions) == ["abs_0", "abs_1"]
    # Buckets are ordered by native symbol name.
    assert functions[0].variant.source.c_name == "qAbs_int"


def test_trusted_and_untrusted_overloads_split_by_unsafe_caption(run_projection):
    out = run_projection(
        {
            "types": [stack_class("QPoint", "QPoint")],
            "methods": [
                function("qDraw", "QtGlobal", arg("p", class_type("QPoint", "ref", is_const=True), 0), c_name="qDraw1"),
                function("qDraw", "QtGlobal", arg("p", class_type("QPoint", "ptr", is_const=True), 0), c_name="qDraw2"),
            ],
        }
    )
    functions = _global_functions(out)
    assert _names(functions) == ["draw", "draw_unsafe"]
    assert [f.is_unsafe for f in functions] == [False, True]


def test_static_and_const_receivers(run_projection):
    out = run_projection(
        {
            "types": [stack_class("QPoint", "QPoint")],
            "methods": [
                method("QPoint", "origin", "QPoint", this_arg("QPoint", is_const=True), return_type="int", c_name="QPoint_origin"),
                method("QPoint", "origin", "QPoint", return_type="int", c_name="QPoint_origin_static"),
            ],
        }
    )
    (point_module,) = out.modules
    (point,) = point_module.types
    assert _names(point.methods) == ["origin", "origin_static"]


def test_overload_trait_shares_receiver_and_lifetime(run_projection):
    from safebind.overloads import TRAIT_LIFETIME

    point_ref = class_type("QPoint", "ref")
    out = run_projection(
        {
            "types": [stack_class("QPoint", "QPoint")],
            "methods": [
                method("QPoint", "shift", "QPoint", this_arg("QPoint"), return_type=point_ref, c_name="QPoint_shift"),
                method(
                    "QPoint", "shift", "QPoint", this_arg("QPoint"), arg("dx", "int", 0),
                    return_type=point_ref, c_name="QPoint_shift1",
                ),
            ],
        }
    )
    (point_module,) = out.modules
    (point,) = point_module.types
    (shift,) = point.methods
    assert shift.overloaded.params_trait_name == "PointShiftArgs"
    assert shift.overloaded.params_trait_lifetime == TRAIT_LIFETIME
    (self_arg,) = shift.overloaded.shared_arguments
    assert self_arg.name == "self"
    assert self_arg.argument_type.api_type.to_text() == "&'largs mut qt_core::point::Point"
    assert shift.overloaded.common_return_type.to_text() == "&'largs mut qt_core::point::Point"

    (overloading,) = point_module.submodules
    (trait_decl,) = overloading.types
    trait = trait_decl.overload_trait
    assert [a.name for a in trait.shared_arguments] == ["original_self"]
    assert [len(v.arguments) for v in trait.impls] == [0, 1]


def test_overload_functions_keeps_single_bucket_uncaptioned(make_ctx):
    from safebind.methods import FREE_SCOPE, generate_single_method
    from safebind.overloads import overload_functions

    ctx = make_ctx(
        {
            "methods": [
                function("qMin", "QtGlobal", arg("a", "int", 0), c_name="qMin1"),
                function("qMin", "QtGlobal", arg("a", "int", 0), arg("b", "int", 1), c_name="qMin2"),
            ]
        }
    )
    singles = [generate_single_method(ctx, m, FREE_SCOPE) for m in ctx.declarations.methods]
    ((caption, bucket),) = overload_functions(singles)
    assert caption is None
    assert [m.variant.source.c_name for m in bucket] == ["qMin1", "qMin2"]


def test_argument_count_mismatch_keeps_overloads_apart_but_in_one_bucket(make_ctx):
    from safebind.methods import FREE_SCOPE, generate_single_method
    from safebind.overloads import overload_functions

    ctx = make_ctx(
        {
            "methods": [
                function("qMin", "QtGlobal", arg("a", "int", 0), return_type="int", c_name="qMin_int"),
                function(
                    "qMin", "QtGlobal", arg("a", "int", 0), arg("b", "int", 1), return_type="int", c_name="qMin_int2"
                ),
                function("qMin", "QtGlobal", arg("a", "long", 0), return_type="long", c_name="qMin_long"),
            ]
        }
    )
    one, two, long_ = [generate_single_method(ctx, m, FREE_SCOPE) for m in ctx.declarations.methods]
    # A different argument count is never substitutable, so both can sit behind one dispatcher.
    assert one.can_be_overloaded_with(two)
    # Same count with types that may be identical on some platform cannot.
    assert not one.can_be_overloaded_with(long_)

    buckets = overload_functions([long_, two, one])
    assert [(caption, [m.variant.source.c_name for m in bucket]) for caption, bucket in buckets] == [
        ("0", ["qMin_int", "qMin_int2"]),
        ("1", ["qMin_long"]),
    ]
