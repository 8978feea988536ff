"""Convert OpenAPI names into Python identifiers for the generated client.

Patterns:
  - tag                 -> <Tag>Api class in api/<tag>_api.py
  - schema name         -> <Schema> class in model/<schema>.py
  - operationId         -> snake_case method name
  - no operationId      -> {verb}_{resource} from HTTP method + path
  - enum value          -> UPPER_SNAKE member name

Examples:
  tag "pet"                      -> PetApi / pet_api
  schema "ApiResponse"           -> ApiResponse / api_response
  operationId "getPetById"       -> get_pet_by_id
  GET  /store/inventory          -> list_store_inventory
  GET  /pet/{petId}              -> get_pet
  POST /user/createWithList      -> create_user_create_with_list
"""

from __future__ import annotations

import keyword
import re

# Standard HTTP method to verb mapping
_METHOD_VERBS: dict[str, str] = {
    "get": "list",
    "post": "create",
    "put": "update",
    "delete": "delete",
    "patch": "update",
    "head": "head",
    "options": "options",
}

# Names the generated package itself defines on every API/model class
_RESERVED: set[str] = {
    "self", "api_client", "to_dict", "from_dict",
    "openapi_types", "attribute_map", "registry",
}


def _singularize(word: str) -> str:
    """Return the singular form of a resource name."""
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("ses"):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _sanitize_segment(segment: str) -> str:
    """Sanitize a name fragment for use in a Python identifier."""
    name = camel_to_snake(segment)
    name = re.sub(r"[.\-\s/]", "_", name)
    name = re.sub(r"[^a-z0-9_]", "", name)
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def python_identifier(name: str) -> str:
    """snake_case identifier that is never a keyword or starts with a digit."""
    ident = _sanitize_segment(name) or "param"
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident) or ident in _RESERVED:
        ident = f"{ident}_"
    return ident


def class_name(name: str) -> str:
    """PascalCase class name from a schema or tag name."""
    words = [w for w in re.split(r"[^A-Za-z0-9]+", name) if w]
    joined = "".join(w[0].upper() + w[1:] for w in words) or "Model"
    if joined[0].isdigit():
        joined = f"Model{joined}"
    return joined


def module_name(name: str) -> str:
    """Module file stem for a generated class."""
    return python_identifier(name).rstrip("_") or "model"


def api_class_name(tag: str) -> str:
    """``pet`` -> ``PetApi``."""
    return f"{class_name(tag)}Api"


def api_module_name(tag: str) -> str:
    """``pet`` -> ``pet_api``."""
    return f"{module_name(tag)}_api"


def _extract_path_parts(path: str) -> list[str]:
    """Meaningful path segments, without {params}."""
    return [p for p in path.split("/") if p and not p.startswith("{")]


def build_operation_name(method: str, path: str, operation_id: str | None = None) -> str:
    """Method name for an operation.

    The operationId wins when present; otherwise the name is derived
    from the HTTP method and the path.
    """
    if operation_id:
        return python_identifier(operation_id)

    method_lower = method.lower()
    parts = [_sanitize_segment(p) for p in _extract_path_parts(path)]
    parts = [p for p in parts if p]
    has_id = any(p.startswith("{") for p in path.split("/") if p)

    if method_lower == "get":
        verb = "get" if has_id else "list"
    else:
        verb = _METHOD_VERBS.get(method_lower, method_lower)

    if not parts:
        return f"{verb}_root"

    if len(parts) == 1 and has_id:
        return f"{verb}_{_singularize(parts[0])}"
    return f"{verb}_{'_'.join(parts)}"


def enum_member_name(value: object) -> str:
    """UPPER_SNAKE member name for an enum value."""
    name = _sanitize_segment(str(value)).upper()
    if not name:
        return "EMPTY"
    if name[0].isdigit():
        name = f"VALUE_{name}"
    return name
