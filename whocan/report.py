"""Report rendering (deterministic).

`render_report` produces the plain-text report; `report_to_json_dict` the `--output json` view.
Users and groups are always sorted, whatever order the server returned them in.
"""

from __future__ import annotations

from typing import Any, Dict, List

from whocan.core.models import NAMESPACE_ALL, AuthorizationAttributes, ResourceAccessReviewResponse

ALL_NAMESPACES_DISPLAY = "<all>"
NONE_DISPLAY = "none"

# Continuation indent lines up with the first entry after "Users:  " / "Groups: ".
_CONTINUATION = "\n        "


def _namespace_display(namespace: str) -> str:
    if namespace == NAMESPACE_ALL:
        return ALL_NAMESPACES_DISPLAY
    return namespace


def _principals_display(names: List[str]) -> str:
    if not names:
        return NONE_DISPLAY
    return _CONTINUATION.join(names)


def render_report(result: ResourceAccessReviewResponse, query: AuthorizationAttributes) -> str:
    lines = [
        f"Namespace: {_namespace_display(result.namespace)}",
        f"Verb:      {query.verb}",
        f"Resource:  {query.resource_display()}",
        "",
        f"Users:  {_principals_display(result.sorted_users())}",
        "",
        f"Groups: {_principals_display(result.sorted_groups())}",
        "",
    ]
    return "\n".join(lines) + "\n"


def report_to_json_dict(result: ResourceAccessReviewResponse, query: AuthorizationAttributes) -> Dict[str, Any]:
    return {
        "namespace": _namespace_display(result.namespace),
        "verb": query.verb,
        "resource": query.resource_display(),
        "users": result.sorted_users(),
        "groups": result.sorted_groups(),
    }
