"""REST naming conventions.

Maps well-known action names to the verb they are expected to carry and the
path template (relative to the controller prefix) they produce. Names are
compared in kebab form, so ``getList``, ``get_list`` and ``get-list`` are the
same action.
"""

from __future__ import annotations

from typing import Optional

from autoroute.domain.models import HttpVerb, as_verb
from autoroute.text.transform import camel_to_kebab

GET, POST, PUT, PATCH, DELETE = (
    HttpVerb.GET,
    HttpVerb.POST,
    HttpVerb.PUT,
    HttpVerb.PATCH,
    HttpVerb.DELETE,
)

_RESTFUL: dict[str, tuple[HttpVerb, str]] = {
    # collection
    "index": (GET, ""),
    "list": (GET, ""),
    "getList": (GET, ""),
    # detail
    "show": (GET, "/{id}"),
    "detail": (GET, "/{id}"),
    "getDetail": (GET, "/{id}"),
    "get": (GET, "/{id}"),
    # create
    "create": (POST, ""),
    "store": (POST, ""),
    "add": (POST, ""),
    "post": (POST, ""),
    # update
    "update": (PUT, "/{id}"),
    "edit": (PUT, "/{id}"),
    "modify": (PUT, "/{id}"),
    "put": (PUT, "/{id}"),
    "patch": (PATCH, "/{id}"),
    # delete
    "delete": (DELETE, "/{id}"),
    "destroy": (DELETE, "/{id}"),
    "remove": (DELETE, "/{id}"),
    # batch
    "batch": (POST, "/batch"),
    "batchUpdate": (PUT, "/batch"),
    "batchDelete": (DELETE, "/batch"),
    # search
    "search": (GET, "/search"),
    "query": (GET, "/query"),
    "filter": (GET, "/filter"),
    # import / export
    "export": (GET, "/export"),
    "import": (POST, "/import"),
    "upload": (POST, "/upload"),
    "download": (GET, "/download/{id}"),
    # current user
    "currentUser": (GET, "/current"),
    "getCurrentUser": (GET, "/current"),
    "current": (GET, "/current"),
    "me": (GET, "/me"),
    "profile": (GET, "/profile"),
    "self": (GET, "/me"),
}

_SUB_ACTIONS: dict[str, HttpVerb] = {
    # state
    "state": GET,
    "status": GET,
    "enable": POST,
    "disable": POST,
    "activate": POST,
    "deactivate": POST,
    # relations
    "relationships": GET,
    "relations": GET,
    "children": GET,
    "parent": GET,
    # actions
    "lock": POST,
    "unlock": POST,
    "publish": POST,
    "unpublish": POST,
    "archive": POST,
    "restore": POST,
    "clone": POST,
    "duplicate": POST,
    # review
    "approve": POST,
    "reject": POST,
    "review": GET,
    "audit": GET,
    # stats
    "stats": GET,
    "statistics": GET,
    "metrics": GET,
    "analytics": GET,
    # history
    "history": GET,
    "logs": GET,
    "versions": GET,
    "revisions": GET,
    # permissions
    "permissions": GET,
    "roles": GET,
    "share": POST,
    "unshare": POST,
}

_SUMMARIES: dict[HttpVerb, dict[str, str]] = {
    GET: {
        "index": "List resources",
        "list": "List resources",
        "getList": "List resources",
        "show": "Get resource details",
        "detail": "Get resource details",
        "getDetail": "Get resource details",
        "get": "Get resource",
        "search": "Search",
        "query": "Query",
        "filter": "Filter",
        "export": "Export data",
        "download": "Download file",
        "state": "Get state",
        "status": "Get status",
        "relationships": "Get relationships",
        "relations": "Get relationships",
        "children": "Get children",
        "parent": "Get parent",
        "review": "Get review information",
        "audit": "Get audit information",
        "stats": "Get statistics",
        "statistics": "Get statistics",
        "metrics": "Get metrics",
        "analytics": "Get analytics",
        "history": "Get history",
        "logs": "Get logs",
        "versions": "Get versions",
        "revisions": "Get revisions",
        "permissions": "Get permissions",
        "roles": "Get roles",
    },
    POST: {
        "create": "Create",
        "store": "Store",
        "add": "Add",
        "post": "Submit",
        "batch": "Batch operation",
        "import": "Import data",
        "upload": "Upload file",
        "enable": "Enable",
        "disable": "Disable",
        "activate": "Activate",
        "deactivate": "Deactivate",
        "lock": "Lock",
        "unlock": "Unlock",
        "publish": "Publish",
        "unpublish": "Unpublish",
        "archive": "Archive",
        "restore": "Restore",
        "clone": "Clone",
        "duplicate": "Duplicate",
        "approve": "Approve",
        "reject": "Reject",
        "share": "Share",
        "unshare": "Unshare",
    },
    PUT: {
        "update": "Update",
        "edit": "Edit",
        "modify": "Modify",
        "put": "Update",
        "batchUpdate": "Batch update",
    },
    PATCH: {
        "patch": "Partial update",
        "update": "Partial update",
    },
    DELETE: {
        "delete": "Delete",
        "destroy": "Destroy",
        "remove": "Remove",
        "batchDelete": "Batch delete",
    },
}


def _key(action: str) -> str:
    return camel_to_kebab(action)


RESTFUL_MAPPING: dict[str, tuple[HttpVerb, str]] = {_key(k): v for k, v in _RESTFUL.items()}

RESOURCE_ACTION_MAPPING: dict[str, tuple[HttpVerb, str]] = {
    _key(k): (verb, "/{id}/" + _key(k)) for k, verb in _SUB_ACTIONS.items()
}

SUMMARIES: dict[HttpVerb, dict[str, str]] = {
    verb: {_key(k): v for k, v in phrases.items()} for verb, phrases in _SUMMARIES.items()
}


def lookup(action: str, verb: HttpVerb | str) -> Optional[str]:
    """Path template for ``action`` when annotated with ``verb``.

    A verb that disagrees with the table is not an error: the caller falls
    through to path synthesis.
    """
    verb = as_verb(verb)
    key = _key(action)
    for table in (RESTFUL_MAPPING, RESOURCE_ACTION_MAPPING):
        entry = table.get(key)
        if entry is not None and entry[0] == verb:
            return entry[1]
    return None


def is_restful(action: str) -> bool:
    key = _key(action)
    return key in RESTFUL_MAPPING or key in RESOURCE_ACTION_MAPPING


def expected_verb(action: str) -> Optional[HttpVerb]:
    key = _key(action)
    entry = RESTFUL_MAPPING.get(key) or RESOURCE_ACTION_MAPPING.get(key)
    return entry[0] if entry else None


def summary_for(verb: HttpVerb | str, action: str) -> Optional[str]:
    return SUMMARIES.get(as_verb(verb), {}).get(_key(action))
