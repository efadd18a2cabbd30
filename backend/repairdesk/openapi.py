"""Clean minimal deterministic OpenAPI spec builder.

Paths are derived from the registered Flask routes so the document never
drifts from the API. Each operation carries ``x-required-roles`` taken from
the ``require_roles`` gate of its view (empty list = any authenticated role).
"""
from typing import Any, Dict
from flask import Flask

from repairdesk.models.job import Job

__all__ = ["build_openapi_spec"]

PUBLIC_ENDPOINTS = {"health", "openapi_spec", "docs_index", "static"}

SORT_DETAILS = {
    "/jobs": "Comma separated: jobNumber,status,priority,createdAt,updatedAt,id (prefix - for desc)",
    "/parts": "Comma separated: partNumber,partName,stockQty,updatedAt,id (prefix - for desc)",
    "/customers": "Comma separated: fullName,updatedAt,id (prefix - for desc)",
}

REQUEST_SCHEMAS = {
    ("/jobs", "post"): "JobCreate",
    ("/jobs/{job_id}", "patch"): "JobUpdate",
    ("/jobs/{job_id}/status", "patch"): "StatusChange",
    ("/jobs/{job_id}/assign", "patch"): "TechnicianAssignment",
    ("/jobs/{job_id}/records", "post"): "RepairRecordCreate",
    ("/jobs/{job_id}/parts", "post"): "JobPartCreate",
    ("/customers", "post"): "CustomerCreate",
    ("/customers/{customer_id}", "put"): "CustomerUpdate",
    ("/parts", "post"): "PartCreate",
    ("/parts/{part_id}", "put"): "PartUpdate",
    ("/parts/{part_id}/adjust", "put"): "StockAdjustment",
}


def _payload_schemas() -> Dict[str, Any]:
    from repairdesk.schemas import jobs as job_schemas, inventory as inv_schemas
    out = {}
    for module in (job_schemas, inv_schemas):
        for name in sorted(set(REQUEST_SCHEMAS.values())):
            model = getattr(module, name, None)
            if model is not None:
                schema = model.model_json_schema(by_alias=True, ref_template="#/components/schemas/{model}")
                out.update(schema.pop("$defs", {}))
                out[name] = schema
    return out


def _path_of(rule) -> str:
    path = rule.rule
    for arg in rule.arguments:
        path = path.replace(f"<int:{arg}>", f"{{{arg}}}").replace(f"<{arg}>", f"{{{arg}}}")
    return path


def _error_responses() -> Dict[str, Any]:
    ref = {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}}
    return {
        "400": {"description": "ValidationError", **ref},
        "401": {"description": "Missing or invalid token"},
        "403": {"description": "AuthorizationError", **ref},
        "404": {"description": "NotFoundError", **ref},
        "409": {"description": "InvalidStateError / InsufficientStockError / ConflictError", **ref},
    }


def build_openapi_spec(app: Flask) -> Dict[str, Any]:
    schemas: Dict[str, Any] = _payload_schemas()
    schemas["Job"] = {
        "type": "object",
        "properties": {
            "id": {"type": "integer"},
            "jobNumber": {"type": "string", "example": "RJ2025-0001"},
            "status": {"type": "string", "enum": list(Job.ALL_STATUSES)},
            "priority": {"type": "integer", "enum": [0, 1, 2]},
            "version": {"type": "integer"},
        },
        "x-transitions": list(Job.ALL_STATUSES),
        "x-terminal": list(Job.TERMINAL_STATUSES),
    }
    schemas["Pagination"] = {
        "type": "object",
        "properties": {
            "total": {"type": "integer"},
            "limit": {"type": "integer"},
            "offset": {"type": "integer"},
            "returned": {"type": "integer"},
        },
        "required": ["total", "limit", "offset", "returned"],
    }
    schemas["Error"] = {
        "type": "object",
        "properties": {
            "error": {
                "type": "object",
                "properties": {
                    "status": {"type": "integer"},
                    "title": {"type": "string"},
                    "kind": {"type": "string"},
                    "detail": {"type": "string"},
                    "field": {"type": "string"},
                    "errors": {"type": "array", "items": {"type": "object"}},
                },
                "required": ["status", "title", "kind", "detail"],
            }
        },
        "required": ["error"],
    }

    caching_headers = {h: {"schema": {"type": "string"}} for h in ("ETag", "Last-Modified", "X-Last-Modified-ISO")}
    paths: Dict[str, Any] = {}
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        if rule.endpoint in PUBLIC_ENDPOINTS:
            continue
        view = app.view_functions[rule.endpoint]
        roles = list(getattr(view, "required_roles", ()))
        path = _path_of(rule)
        tag = path.split("/")[1].capitalize()
        for method in sorted(m.lower() for m in rule.methods - {"OPTIONS"}):
            op: Dict[str, Any] = {
                "summary": (view.__doc__ or rule.endpoint.split(".")[-1].replace("_", " ")).strip().splitlines()[0],
                "operationId": f"{method}_{rule.endpoint.replace('.', '_')}",
                "tags": [tag],
                "x-required-roles": roles,
                "parameters": [
                    {"name": arg, "in": "path", "required": True, "schema": {"type": "integer"}}
                    for arg in sorted(rule.arguments)
                ],
                "responses": {"200": {"description": "OK"}, **_error_responses()},
            }
            if method in ("get", "head") and path in SORT_DETAILS:
                op["parameters"] += [
                    {"$ref": "#/components/parameters/LimitParam"},
                    {"$ref": "#/components/parameters/OffsetParam"},
                    {"name": "sort", "in": "query", "schema": {"type": "string"}, "description": SORT_DETAILS[path]},
                ]
                op["responses"]["200"]["headers"] = caching_headers
            body_schema = REQUEST_SCHEMAS.get((path, method))
            if body_schema:
                op["requestBody"] = {
                    "required": True,
                    "content": {"application/json": {"schema": {"$ref": f"#/components/schemas/{body_schema}"}}},
                }
            if method == "post":
                op["responses"]["201"] = op["responses"].pop("200")
                op["responses"]["201"]["description"] = "Created"
            paths.setdefault(path, {})[method] = op

    tags = sorted({op["tags"][0] for ops in paths.values() for op in ops.values()})
    return {
        "openapi": "3.0.3",
        "info": {"title": "Repair Desk API", "version": "0.1.0"},
        "paths": paths,
        "components": {
            "schemas": schemas,
            "parameters": {
                "LimitParam": {"name": "limit", "in": "query", "schema": {"type": "integer", "default": 50}},
                "OffsetParam": {"name": "offset", "in": "query", "schema": {"type": "integer", "default": 0}},
            },
            "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
        },
        "security": [{"BearerAuth": []}],
        "tags": [{"name": t, "description": f"{t} endpoints"} for t in tags],
    }
