"""Overload resolution: grouping same-named methods and naming the groups."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from .context import ProjectionContext
from .decls import ParsedMethod
from .errors import AmbiguousOverloadError, SafeBindError, StructuralInvariantError
from .methods import (
    ArgumentsVariant,
    CapabilityImpl,
    CaptionStrategy,
    MethodArgument,
    MethodDoc,
    MethodScope,
    OverloadedArguments,
    ReceiverKind,
    ScopeKind,
    SingleMethod,
    TargetMethod,
    generate_single_method,
    process_cast,
    process_destructor,
)
from .names import sanitize_identifier
from .target import TargetName, TargetType
from .words import class_case

logger = logging.getLogger(__name__)

TRAIT_LIFETIME = "largs"


@dataclass(frozen=True)
class OverloadTrait:
    """Argument-shape capability dispatching one method name to its overloads."""

    name: str
    shared_arguments: tuple[MethodArgument, ...]
    impls: tuple[ArgumentsVariant, ...]
    lifetime: str | None
    common_return_type: TargetType | None
    method_name: TargetName
    method_scope: MethodScope
    is_unsafe: bool


@dataclass
class SiblingFunctions:
    methods: list[TargetMethod] = field(default_factory=list)
    trait_impls: list[CapabilityImpl] = field(default_factory=list)
    overload_traits: list[OverloadTrait] = field(default_factory=list)


def _sort_key(method: SingleMethod) -> tuple[str, str]:
    source = method.variant.source
    return source.c_name, source.short_text


def _try_strategy(
    strategy: CaptionStrategy, buckets: list[list[SingleMethod]], all_receivers: set[ReceiverKind]
) -> list[str | None] | None:
    if strategy is CaptionStrategy.UNSAFE_ONLY:
        if len(buckets) != 2 or buckets[0][0].is_unsafe == buckets[1][0].is_unsafe:
            return None
    result: list[str | None] = []
    for index, bucket in enumerate(buckets):
        try:
            captions = {m.name_suffix(strategy, all_receivers, index) for m in bucket}
        except StructuralInvariantError:
            return None
        if len(captions) != 1:
            return None
        caption = captions.pop()
        if caption in result:
            return None
        result.append(caption)
    return result


def overload_functions(methods: list[SingleMethod]) -> list[tuple[str | None, list[SingleMethod]]]:
    """Split same-named methods into overloadable buckets and caption each bucket.

    A method joins the first bucket whose members it can be overloaded with.
    Captions are only assigned when more than one bucket is needed.
    """
    buckets: list[list[SingleMethod]] = []
    for method in sorted(methods, key=_sort_key):
        for bucket in buckets:
            if all(m.can_be_overloaded_with(method) for m in bucket):
                bucket.append(method)
                break
        else:
            buckets.append([method])
    if len(buckets) == 1:
        return [(None, buckets[0])]

    all_receivers = {b[0].receiver_kind() for b in buckets}
    for strategy in CaptionStrategy:
        captions = _try_strategy(strategy, buckets, all_receivers)
        if captions is not None:
            logger.debug("captioned %d overload buckets of %s with %s", len(buckets), methods[0].name, strategy.value)
            return list(zip(captions, buckets))
    signatures = "; ".join(m.variant.source.short_text for b in buckets for m in b)
    raise AmbiguousOverloadError(f"no caption strategy distinguishes overloads of {methods[0].name}: {signatures}")


def generate_final_method(
    methods: list[SingleMethod], scope: MethodScope, caption: str | None
) -> tuple[TargetMethod, OverloadTrait | None]:
    """Emit one bucket as a plain method or as a dispatcher over an overload trait."""
    methods = sorted(methods, key=_sort_key)
    first = methods[0]
    last_name = first.name.last_name
    if caption:
        last_name = f"{last_name}_{caption}"
    name = TargetName((*first.name.parts[:-1], sanitize_identifier(last_name)))

    if len(methods) == 1:
        source = first.variant.source
        method = replace(first, name=name, doc=MethodDoc(source_signature=source.short_text, doc=source.doc))
        return method.to_method(), None

    receiver = first.receiver_kind()
    self_arg = first.variant.arguments[0] if receiver is not ReceiverKind.NONE else None
    trait_name = class_case(last_name) + "Args"
    if scope.kind is ScopeKind.IMPL and scope.target_type is not None:
        trait_name = scope.target_type.base.last_name + trait_name

    variants: list[ArgumentsVariant] = []
    grouped: dict[ParsedMethod, list[ArgumentsVariant]] = {}
    for m in methods:
        variant = m.variant
        if self_arg is not None:
            if not variant.arguments or variant.arguments[0].argument_type.cpp_type != self_arg.argument_type.cpp_type:
                raise StructuralInvariantError(f"overloads of {first.name} disagree on the receiver")
            variant = replace(variant, arguments=variant.arguments[1:])
        grouped.setdefault(m.variant.source, []).append(variant)
        variants.append(variant)

    docs = [
        MethodDoc(
            source_signature=source.short_text,
            doc=source.doc,
            target_signatures=tuple(v.signature_text(name.last_name, receiver) for v in group),
        )
        for source, group in sorted(grouped.items(), key=lambda kv: kv[0].short_text)
    ]

    shared: list[MethodArgument] = [self_arg] if self_arg is not None else []
    has_lifetime = any(a.argument_type.api_type.is_ref() for a in shared)
    first_return = variants[0].return_type.api_type
    common_return: TargetType | None = None
    if all(v.return_type.api_type == first_return for v in variants):
        common_return = first_return
        if first_return.is_ref():
            has_lifetime = True
            common_return = first_return.with_lifetime(TRAIT_LIFETIME)
    if has_lifetime:
        shared = [
            replace(a, argument_type=replace(a.argument_type, api_type=a.argument_type.api_type.with_lifetime(TRAIT_LIFETIME)))
            if a.argument_type.api_type.is_ref()
            else a
            for a in shared
        ]
    lifetime = TRAIT_LIFETIME if has_lifetime else None

    trait = OverloadTrait(
        name=trait_name,
        shared_arguments=(replace(self_arg, name="original_self"),) if self_arg is not None else (),
        impls=tuple(variants),
        lifetime=lifetime,
        common_return_type=common_return,
        method_name=name,
        method_scope=first.scope,
        is_unsafe=first.is_unsafe,
    )
    method = TargetMethod(
        name=name,
        scope=first.scope,
        is_unsafe=first.is_unsafe,
        overloaded=OverloadedArguments(
            params_trait_name=trait_name,
            params_trait_lifetime=lifetime,
            common_return_type=common_return,
            shared_arguments=tuple(shared),
            variant_argument_name="args",
            source_method_name=first.variant.source.full_name,
        ),
        variant_docs=tuple(docs),
    )
    return method, trait


def process_sibling_functions(
    ctx: ProjectionContext, methods: list[ParsedMethod], scope: MethodScope
) -> SiblingFunctions:
    """Project all methods of one type, or all free functions of one module."""
    result = SiblingFunctions()
    by_name: dict[str, list[SingleMethod]] = {}
    for method in methods:
        if method.is_destructor:
            try:
                result.trait_impls.append(process_destructor(ctx, method, scope))
            except SafeBindError as e:
                ctx.diagnostics.skip(method.short_text, f"failed to generate destructor: {e}")
            continue
        try:
            single = generate_single_method(ctx, method, scope)
        except SafeBindError as e:
            ctx.diagnostics.skip(method.short_text, f"failed to generate method: {e}")
            continue
        if method.cast is not None and method.class_membership is None:
            try:
                result.trait_impls.extend(process_cast(ctx, single))
            except SafeBindError as e:
                ctx.diagnostics.skip(method.short_text, f"failed to generate cast wrapper: {e}")
            continue
        by_name.setdefault(single.name.last_name, []).append(single)

    for last_name in sorted(by_name):
        for caption, bucket in overload_functions(by_name[last_name]):
            method, trait = generate_final_method(bucket, scope, caption)
            result.methods.append(method)
            if trait is not None:
                result.overload_traits.append(trait)
    result.methods.sort(key=lambda m: m.name.last_name)
    result.trait_impls.sort(key=CapabilityImpl.sort_key)
    return result
