"""Projection of native enumerations onto binding-language enums."""

from __future__ import annotations

import logging

from .decls import EnumValue
from .names import sanitize_identifier
from .registry import ProjectedEnumValue
from .words import common_prefix_len, common_suffix_len, split_words, to_class_case

logger = logging.getLogger(__name__)

DUMMY_VARIANT = "_Invalid"


def prepare_enum_values(values: list[EnumValue] | tuple[EnumValue, ...]) -> list[ProjectedEnumValue]:
    """Turn native enumerators into variants of a fixed-layout enum.

    Values are deduplicated (the first name wins, later ones become aliases),
    a single-valued enum gets a synthetic second variant, and words shared by
    every variant name are stripped from both ends unless that would leave an
    empty name or one starting with a digit. The result is sorted by value.
    """
    by_value: dict[int, ProjectedEnumValue] = {}
    for v in values:
        existing = by_value.get(v.value)
        if existing is not None:
            by_value[v.value] = ProjectedEnumValue(
                name=existing.name,
                value=existing.value,
                source_names=(*existing.source_names, v.name),
                doc=existing.doc,
            )
            continue
        by_value[v.value] = ProjectedEnumValue(
            name=sanitize_identifier(to_class_case(split_words(v.name))),
            value=v.value,
            source_names=(v.name,),
            doc=v.doc,
        )
    result = list(by_value.values())

    if len(result) == 1:
        dummy_value = 1 if 0 in by_value else 0
        result.append(ProjectedEnumValue(name=DUMMY_VARIANT, value=dummy_value, is_dummy=True))
    elif result:
        result = _strip_common_words(result)
    result.sort(key=lambda x: x.value)
    return result


def _strip_common_words(values: list[ProjectedEnumValue]) -> list[ProjectedEnumValue]:
    words = [split_words(v.name) for v in values]
    prefix = common_prefix_len(words)
    suffix = common_suffix_len(words)
    if prefix == 0 and suffix == 0:
        return values
    short = []
    for w in words:
        end = len(w) - suffix
        short.append(w[prefix:end] if end > prefix else [])
    if any(not s or s[0][0].isdigit() for s in short):
        logger.debug("keeping full enum names: %s", ", ".join(v.name for v in values))
        return values
    return [
        ProjectedEnumValue(
            name=sanitize_identifier(to_class_case(s)),
            value=v.value,
            source_names=v.source_names,
            doc=v.doc,
        )
        for v, s in zip(values, short)
    ]
