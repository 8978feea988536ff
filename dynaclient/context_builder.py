"""Build Jinja2 template context from a parsed OpenAPI spec.

Groups operations into one API class per tag, builds one model per
object schema, and assembles the context dict for the client templates.
"""

from __future__ import annotations

import re
from typing import Any

from .loader import get_base_path, get_paths, get_schemas, resolve_ref
from .naming import (
    api_class_name,
    api_module_name,
    build_operation_name,
    class_name,
    module_name,
)
from .schema_parser import (
    get_response_type,
    is_model_schema,
    parse_parameters,
    parse_properties,
)

_METHODS = ("get", "post", "put", "delete", "patch", "head", "options")

# Tag for operations that declare none
_DEFAULT_TAG = "default"

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _make_description(method: str, path: str, operation: dict[str, Any]) -> str:
    """Build a method docstring."""
    summary = operation.get("summary", "")
    description = operation.get("description", "")

    if summary:
        doc = summary
    elif description:
        doc = description.split(".")[0]
    else:
        doc = f"{method.upper()} {path}"

    return " ".join(doc.split()).rstrip(". ")


def _deduplicate_operation_names(operations: list[dict[str, Any]]) -> None:
    """Ensure method names are unique within one API class."""
    seen: dict[str, int] = {}
    for operation in operations:
        name = operation["name"]
        if name in seen:
            seen[name] += 1
            operation["name"] = f"{name}_{operation['method']}"
        else:
            seen[name] = 1

    final_seen: dict[str, int] = {}
    for operation in operations:
        name = operation["name"]
        if name in final_seen:
            final_seen[name] += 1
            operation["name"] = f"{name}_{final_seen[name]}"
        else:
            final_seen[name] = 1


def referenced_models(type_strings: list[str | None], model_names: set[str]) -> list[str]:
    """Model class names mentioned in a set of annotation strings."""
    found: set[str] = set()
    for type_string in type_strings:
        if type_string:
            found.update(n for n in _IDENTIFIER.findall(type_string) if n in model_names)
    return sorted(found)


def build_models(spec: dict[str, Any]) -> list[dict[str, Any]]:
    """One model entry per object schema."""
    models: list[dict[str, Any]] = []
    used_modules: set[str] = set()
    for name, schema in sorted(get_schemas(spec).items()):
        resolved = resolve_ref(spec, schema["$ref"]) if "$ref" in schema else schema
        if not is_model_schema(resolved):
            continue
        module = module_name(class_name(name))
        while module in used_modules:
            module += "_"
        used_modules.add(module)
        models.append({
            "name": name,
            "class_name": class_name(name),
            "module": module,
            "description": " ".join(resolved.get("description", "").split()).rstrip(". "),
            "properties": parse_properties(spec, schema),
        })
    return models


def build_apis(spec: dict[str, Any], model_names: set[str]) -> list[dict[str, Any]]:
    """One API entry per tag, each holding its operations."""
    apis: dict[str, dict[str, Any]] = {}

    for path, path_item in sorted(get_paths(spec).items()):
        for method in _METHODS:
            if method not in path_item:
                continue

            operation = path_item[method]
            tags = operation.get("tags") or [_DEFAULT_TAG]
            tag = tags[0]
            params = parse_parameters(spec, operation, path_item)
            response_type = get_response_type(spec, operation)

            api = apis.setdefault(tag, {
                "tag": tag,
                "class_name": api_class_name(tag),
                "module": api_module_name(tag),
                "operations": [],
            })
            api["operations"].append({
                "name": build_operation_name(method, path, operation.get("operationId")),
                "method": method,
                "path": path,
                "params": params,
                "response_type": response_type,
                "description": _make_description(method, path, operation),
                "deprecated": operation.get("deprecated", False),
            })

    for api in apis.values():
        _deduplicate_operation_names(api["operations"])
        types = [p["type"] for op in api["operations"] for p in op["params"]]
        types += [op["response_type"] for op in api["operations"]]
        api["imports"] = referenced_models(types, model_names)

    return [apis[tag] for tag in sorted(apis)]


def build_context(spec: dict[str, Any], package: str = "swagger_client") -> dict[str, Any]:
    """Build the full template context from the OpenAPI spec."""
    models = build_models(spec)
    apis = build_apis(spec, {m["class_name"] for m in models})
    info = spec.get("info", {})

    return {
        "package": package,
        "title": info.get("title", "API"),
        "api_version": info.get("version", "unknown"),
        "base_path": get_base_path(spec),
        "apis": apis,
        "models": models,
        "operation_count": sum(len(api["operations"]) for api in apis),
    }
