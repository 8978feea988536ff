"""Extract parameter, property and response types from OpenAPI schemas.

Handles:
- Path, query and header parameters
- Swagger 2.0 ``body`` / ``formData`` parameters (``type: file`` uploads)
- OpenAPI 3 ``requestBody`` (JSON, form and multipart)
- $ref resolution to generated model class names
- allOf composition, oneOf/anyOf (first concrete branch)
- Enum properties, emitted as nested enum classes on the owning model
- readOnly fields (kept on models, never required)
"""

from __future__ import annotations

import re
from typing import Any

from .loader import is_swagger2, ref_name, resolve_ref
from .naming import class_name, enum_member_name, python_identifier

_PRIMITIVES: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "file": "bytes",
}

_SUCCESS_CODES = ("200", "201", "202", "203", "2XX", "2xx")

_FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _strip_html(text: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def is_model_schema(schema: dict[str, Any]) -> bool:
    """Whether a referenced schema is generated as a model class."""
    return (
        schema.get("type") == "object"
        or "properties" in schema
        or "allOf" in schema
    ) and "additionalProperties" not in schema


def resolve_schema_type(
    spec: dict[str, Any],
    schema: dict[str, Any],
) -> str:
    """Resolve an OpenAPI schema to a Python type string.

    References to object schemas resolve to the generated model class
    name; references to scalar or enum schemas resolve to the scalar.
    """
    if not schema:
        return "Any"

    if "$ref" in schema:
        resolved = resolve_ref(spec, schema["$ref"])
        if is_model_schema(resolved):
            return class_name(ref_name(schema["$ref"]))
        return resolve_schema_type(spec, resolved)

    if "allOf" in schema:
        if len(schema["allOf"]) == 1:
            return resolve_schema_type(spec, schema["allOf"][0])
        return "dict"

    for key in ("oneOf", "anyOf"):
        if key in schema:
            for sub in schema[key]:
                t = resolve_schema_type(spec, sub)
                if t != "Any":
                    return t
            return "Any"

    schema_type = schema.get("type")
    if schema_type == "string" and schema.get("format") == "binary":
        return "bytes"
    if schema_type in _PRIMITIVES:
        return _PRIMITIVES[schema_type]
    if schema_type == "array":
        item_type = resolve_schema_type(spec, schema.get("items", {}))
        return f"list[{item_type}]"
    if schema_type == "object" or "properties" in schema or "additionalProperties" in schema:
        return "dict"
    if "enum" in schema:
        return "str"

    return "Any"


def _merge_all_of(spec: dict[str, Any], schema: dict[str, Any]) -> dict[str, Any]:
    """Flatten allOf branches into one object schema."""
    if "allOf" not in schema:
        return schema
    merged_props: dict[str, Any] = dict(schema.get("properties", {}))
    merged_required: list[str] = list(schema.get("required", []))
    for sub in schema["allOf"]:
        if "$ref" in sub:
            sub = resolve_ref(spec, sub["$ref"])
        sub = _merge_all_of(spec, sub)
        merged_props.update(sub.get("properties", {}))
        merged_required.extend(sub.get("required", []))
    return {
        "type": "object",
        "description": schema.get("description", ""),
        "properties": merged_props,
        "required": merged_required,
    }


def _enum_members(values: list[Any]) -> list[dict[str, Any]]:
    """Enum members with unique names, in declaration order."""
    members: list[dict[str, Any]] = []
    seen: set[str] = set()
    for value in values:
        name = enum_member_name(value)
        while name in seen:
            name += "_"
        seen.add(name)
        members.append({"name": name, "value": value})
    return members


def _inline_enum(schema: dict[str, Any]) -> list[Any] | None:
    """Enum values declared inline on a property (directly or on array items)."""
    if "enum" in schema:
        return list(schema["enum"])
    items = schema.get("items", {})
    if schema.get("type") == "array" and "enum" in items:
        return list(items["enum"])
    return None


def _openapi_type(prop_type: str, enum_class: str | None) -> str:
    """Type name the model uses to deserialize a property."""
    if enum_class is None:
        return prop_type
    if prop_type.startswith("list["):
        return f"list[{enum_class}]"
    return enum_class


def parse_properties(spec: dict[str, Any], schema: dict[str, Any]) -> list[dict[str, Any]]:
    """Parse a model schema into property dicts for the model template."""
    if "$ref" in schema:
        schema = resolve_ref(spec, schema["$ref"])
    schema = _merge_all_of(spec, schema)

    properties = schema.get("properties", {})
    required_fields = set(schema.get("required", []))
    props: list[dict[str, Any]] = []
    used: set[str] = set()

    for json_key, prop_schema in properties.items():
        name = python_identifier(json_key)
        while name in used:
            name += "_"
        used.add(name)

        prop_type = resolve_schema_type(spec, prop_schema)
        enum_values = _inline_enum(prop_schema)
        enum_class = f"{class_name(json_key)}Enum" if enum_values else None

        props.append({
            "name": name,
            "json_key": json_key,
            "type": prop_type,
            "openapi_type": _openapi_type(prop_type, enum_class),
            "required": json_key in required_fields and not prop_schema.get("readOnly", False),
            "description": _strip_html(prop_schema.get("description", "")),
            "is_list": prop_type.startswith("list["),
            "enum_class": enum_class,
            "enum_members": _enum_members(enum_values) if enum_values else [],
            "enum_is_str": bool(enum_values) and all(isinstance(v, str) for v in enum_values),
        })

    return props


def _parameter_type(spec: dict[str, Any], param: dict[str, Any]) -> str:
    """Python type of a parameter in either spec dialect."""
    if "schema" in param:
        return resolve_schema_type(spec, param["schema"])
    # Swagger 2.0 declares the type on the parameter itself
    return resolve_schema_type(spec, {k: v for k, v in param.items() if k in ("type", "items", "format", "enum")})


def _make_param(
    name: str,
    wire_name: str,
    location: str,
    param_type: str,
    required: bool,
    description: str = "",
) -> dict[str, Any]:
    return {
        "name": name,
        "wire_name": wire_name,
        "location": location,
        "type": param_type,
        "required": required,
        "description": _strip_html(description),
    }


def _request_body_params(spec: dict[str, Any], operation: dict[str, Any]) -> list[dict[str, Any]]:
    """OpenAPI 3 requestBody as a ``body`` parameter or per-field form parameters."""
    request_body = operation.get("requestBody", {})
    if "$ref" in request_body:
        request_body = resolve_ref(spec, request_body["$ref"])
    content = request_body.get("content", {})
    required = request_body.get("required", False)

    for content_type in _FORM_CONTENT_TYPES:
        if content_type in content:
            schema = content[content_type].get("schema", {})
            if "$ref" in schema:
                schema = resolve_ref(spec, schema["$ref"])
            schema = _merge_all_of(spec, schema)
            required_fields = set(schema.get("required", []))
            params = []
            for key, prop in schema.get("properties", {}).items():
                prop_type = resolve_schema_type(spec, prop)
                params.append(_make_param(
                    python_identifier(key), key,
                    "file" if prop_type == "bytes" else "form",
                    prop_type, key in required_fields, prop.get("description", ""),
                ))
            return params

    for content_type, media in content.items():
        if "json" in content_type or content_type == "*/*":
            body_type = resolve_schema_type(spec, media.get("schema", {}))
            return [_make_param("body", "body", "body", body_type, required,
                                request_body.get("description", ""))]
    return []


def parse_parameters(
    spec: dict[str, Any],
    operation: dict[str, Any],
    path_item: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """Parse all parameters for an operation.

    Path-level parameters are merged in unless the operation overrides
    them. Required parameters come first so they can be positional.
    """
    declared: dict[tuple[str, str], dict[str, Any]] = {}
    for param in (path_item or {}).get("parameters", []) + operation.get("parameters", []):
        if "$ref" in param:
            param = resolve_ref(spec, param["$ref"])
        declared[(param.get("in", "query"), param["name"])] = param

    params: list[dict[str, Any]] = []
    for (location, wire_name), param in declared.items():
        if location == "body":
            params.append(_make_param(
                "body", wire_name, "body",
                resolve_schema_type(spec, param.get("schema", {})),
                param.get("required", False), param.get("description", ""),
            ))
            continue
        if location == "formData":
            location = "file" if param.get("type") == "file" else "form"
        if location == "cookie":
            continue
        params.append(_make_param(
            python_identifier(wire_name), wire_name, location,
            _parameter_type(spec, param),
            param.get("required", False) or location == "path",
            param.get("description", ""),
        ))

    if not is_swagger2(spec):
        params.extend(_request_body_params(spec, operation))

    used: set[str] = set()
    for param in params:
        while param["name"] in used:
            param["name"] += "_"
        used.add(param["name"])

    return [p for p in params if p["required"]] + [p for p in params if not p["required"]]


def get_response_type(spec: dict[str, Any], operation: dict[str, Any]) -> str | None:
    """Python type of the success response body, or None when there is none."""
    responses = operation.get("responses", {})
    success = next((responses[c] for c in _SUCCESS_CODES if c in responses), None)
    if success is None:
        return None
    if "$ref" in success:
        success = resolve_ref(spec, success["$ref"])

    if "schema" in success:
        return resolve_schema_type(spec, success["schema"])

    content = success.get("content", {})
    for ct in ("application/json", "text/json", "*/*"):
        if ct in content and content[ct].get("schema"):
            return resolve_schema_type(spec, content[ct]["schema"])
    for ct, media in content.items():
        if "json" in ct and media.get("schema"):
            return resolve_schema_type(spec, media["schema"])
    return None
