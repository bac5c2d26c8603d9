"""JSON Schema → Gemini schema dialect translation.

Gemini accepts a constrained OpenAPI-style subset: a single uppercase
``type`` tag, a ``nullable`` flag instead of ``"null"`` union members, and
no ``anyOf``/``oneOf``/``allOf`` composition. ``translate`` maps a tool's
``input_schema`` onto that subset and returns ``None`` for nodes that cannot
be given a type, so callers can omit them instead of sending a malformed
schema.

Known limitation: unions keep only the first branch that translates; the
remaining branches are discarded because the dialect has no union type.
"""

from __future__ import annotations

import math
from typing import Any

GeminiSchema = dict[str, Any]

_TYPE_TAGS: dict[str, str] = {
    "object": "OBJECT",
    "array": "ARRAY",
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
}

_SIZE_BOUNDS = ("minItems", "maxItems", "minLength", "maxLength")


def translate(schema: Any) -> GeminiSchema | None:
    """Translate a JSON-Schema node; return None when it cannot be typed."""
    match schema:
        case {"allOf": [_, *_] as branches}:
            return _translate_all_of(branches)
        case {"anyOf": [_, *_] as branches}:
            return _translate_union(branches)
        case {"oneOf": [_, *_] as branches}:
            return _translate_union(branches)
        case dict():
            return _translate_node(schema)
        case _:
            return None


def merge_schemas(a: GeminiSchema, b: GeminiSchema) -> GeminiSchema:
    """Merge two translated ``allOf`` branches.

    Later fields win, except that descriptions keep the first non-empty
    value, ``nullable`` is OR-ed, and ``required``/``properties`` are unioned.
    """
    merged = {**a, **b}

    if a.get("description"):
        merged["description"] = a["description"]
    if a.get("nullable") or b.get("nullable"):
        merged["nullable"] = True

    if "required" in a or "required" in b:
        required = list(a.get("required", []))
        for name in b.get("required", []):
            if name not in required:
                required.append(name)
        merged["required"] = required

    if "properties" in a or "properties" in b:
        merged["properties"] = {**a.get("properties", {}), **b.get("properties", {})}

    if "items" in a or "items" in b:
        merged["items"] = b.get("items", a.get("items"))
    if "enum" in a or "enum" in b:
        merged["enum"] = b.get("enum", a.get("enum"))

    return merged


def _translate_all_of(branches: list[Any]) -> GeminiSchema | None:
    merged: GeminiSchema | None = None
    for branch in branches:
        converted = translate(branch)
        if converted is None:
            continue
        merged = converted if merged is None else merge_schemas(merged, converted)
    return merged


def _translate_union(branches: list[Any]) -> GeminiSchema | None:
    nullable = False
    chosen: GeminiSchema | None = None
    for variant in branches:
        if not isinstance(variant, dict):
            continue
        types = _type_list(variant.get("type"))
        non_null = [t for t in types if not _is_null_type(t)]
        if len(non_null) != len(types):
            nullable = True
            if not non_null:
                continue
            variant = {**variant, "type": non_null[0] if len(non_null) == 1 else non_null}
        converted = translate(variant)
        if converted is not None and chosen is None:
            chosen = converted
    if chosen is None:
        return None
    if nullable:
        return {**chosen, "nullable": True}
    return chosen


def _translate_node(s: dict[str, Any]) -> GeminiSchema | None:
    nullable = False
    base_type: str | None
    match s.get("type"):
        case list() as raw_types:
            filtered = [t for t in raw_types if not _is_null_type(t)]
            nullable = len(filtered) != len(raw_types)
            base_type = _to_type_tag(filtered[0]) if len(filtered) == 1 else None
        case raw:
            base_type = _to_type_tag(raw)
            if base_type is None and _is_null_type(raw):
                nullable = True

    if base_type is None:
        base_type = _infer_type(s)

    out: GeminiSchema = {}
    if base_type is not None:
        out["type"] = base_type
    if nullable:
        out["nullable"] = True

    description = s.get("description")
    if isinstance(description, str) and description.strip():
        out["description"] = description

    match s.get("enum"):
        case list() as values:
            enums = [v for v in values if v is None or isinstance(v, str | int | float)]
            if enums:
                out["enum"] = enums

    _copy_numeric_bounds(s, out)

    for key in _SIZE_BOUNDS:
        if _is_number(s.get(key)):
            out[key] = s[key]
    if isinstance(s.get("format"), str):
        out["format"] = s["format"]

    if out.get("type") == "ARRAY":
        items = translate(s.get("items"))
        if items is not None:
            out["items"] = items

    if out.get("type") == "OBJECT":
        match s.get("properties"):
            case dict() as props:
                converted = {}
                for name, child in props.items():
                    child_schema = translate(child)
                    if child_schema is not None:
                        converted[name] = child_schema
                if converted:
                    out["properties"] = converted
        match s.get("required"):
            case list() as names:
                # Names are kept even when their property failed to translate.
                required = [n for n in names if isinstance(n, str) and n]
                if required:
                    out["required"] = required

    if "type" not in out:
        if "properties" in out:
            out["type"] = "OBJECT"
        elif "items" in out:
            out["type"] = "ARRAY"
        elif "enum" in out:
            out["type"] = "STRING"

    if "type" not in out:
        return None
    return out


def _copy_numeric_bounds(s: dict[str, Any], out: GeminiSchema) -> None:
    minimum = s.get("minimum")
    maximum = s.get("maximum")
    exclusive_min = s.get("exclusiveMinimum")
    exclusive_max = s.get("exclusiveMaximum")

    match out.get("type"):
        case "INTEGER":
            if _is_number(minimum):
                out["minimum"] = minimum
            elif _is_number(exclusive_min):
                out["minimum"] = math.floor(exclusive_min) + 1
            if _is_number(maximum):
                out["maximum"] = maximum
            elif _is_number(exclusive_max):
                out["maximum"] = math.ceil(exclusive_max) - 1
        case "NUMBER":
            # Exclusivity is not representable; bounds pass through as inclusive.
            if _is_number(minimum):
                out["minimum"] = minimum
            elif _is_number(exclusive_min):
                out["minimum"] = exclusive_min
            if _is_number(maximum):
                out["maximum"] = maximum
            elif _is_number(exclusive_max):
                out["maximum"] = exclusive_max


def _infer_type(s: dict[str, Any]) -> str | None:
    if isinstance(s.get("properties"), dict):
        return "OBJECT"
    if isinstance(s.get("items"), dict):
        return "ARRAY"
    match s.get("enum"):
        case [_, *_] as values:
            sample = next((v for v in values if v is not None), None)
            match sample:
                case bool():
                    return "BOOLEAN"
                case str():
                    return "STRING"
                case int():
                    return "INTEGER"
                case float():
                    return "INTEGER" if sample.is_integer() else "NUMBER"
    return None


def _type_list(raw: Any) -> list[Any]:
    match raw:
        case list():
            return raw
        case str():
            return [raw]
        case _:
            return []


def _is_null_type(value: Any) -> bool:
    return isinstance(value, str) and value.lower() == "null"


def _to_type_tag(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return _TYPE_TAGS.get(value.lower())


def _is_number(value: Any) -> bool:
    # json.loads accepts Infinity and NaN.
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int) and not isinstance(value, bool)
