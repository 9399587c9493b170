"""Resource access review dispatch.

The scope is decided once (`review_scope_for`) and the dispatcher calls exactly one reviewer
operation for it. Reviewer errors are not caught or wrapped here.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from whocan.core.models import (
    NAMESPACE_ALL,
    AuthorizationAttributes,
    ClusterWide,
    Namespaced,
    ResourceAccessReviewResponse,
    ReviewOptions,
    ReviewScope,
)

REVIEW_API_GROUP = "authorization.openshift.io"
REVIEW_API_VERSION = "v1"


class ReviewError(Exception):
    """The review could not be performed (transport, permission or server failure)."""


@runtime_checkable
class Reviewer(Protocol):
    def review_cluster_wide(self, query: AuthorizationAttributes) -> ResourceAccessReviewResponse: ...

    def review_namespace_scoped(
        self, namespace: str, query: AuthorizationAttributes
    ) -> ResourceAccessReviewResponse: ...


def review_scope_for(options: ReviewOptions) -> ReviewScope:
    if options.all_namespaces:
        return ClusterWide()
    return Namespaced(namespace=options.namespace)


def dispatch(query: AuthorizationAttributes, scope: ReviewScope, reviewer: Reviewer) -> ResourceAccessReviewResponse:
    if isinstance(scope, ClusterWide):
        return reviewer.review_cluster_wide(query)
    if isinstance(scope, Namespaced):
        return reviewer.review_namespace_scoped(scope.namespace, query)
    raise TypeError(f"Unknown review scope: {scope!r}")


def _action_fields(query: AuthorizationAttributes) -> Dict[str, Any]:
    return {
        "verb": query.verb,
        "resourceAPIGroup": query.group,
        "resource": query.resource,
    }


def resource_access_review_body(
    query: AuthorizationAttributes, *, api_group: str = REVIEW_API_GROUP, api_version: str = REVIEW_API_VERSION
) -> Dict[str, Any]:
    """Cluster-scoped `ResourceAccessReview` request body."""
    body: Dict[str, Any] = {"apiVersion": f"{api_group}/{api_version}", "kind": "ResourceAccessReview"}
    body.update(_action_fields(query))
    return body


def local_resource_access_review_body(
    namespace: str,
    query: AuthorizationAttributes,
    *,
    api_group: str = REVIEW_API_GROUP,
    api_version: str = REVIEW_API_VERSION,
) -> Dict[str, Any]:
    """Namespace-scoped `LocalResourceAccessReview` request body."""
    body: Dict[str, Any] = {"apiVersion": f"{api_group}/{api_version}", "kind": "LocalResourceAccessReview"}
    body.update(_action_fields(query))
    body["namespace"] = namespace
    return body


def parse_review_response(payload: Optional[Dict[str, Any]]) -> ResourceAccessReviewResponse:
    """
    Convert a `ResourceAccessReviewResponse` JSON payload into the domain model.

    Notes:
    - `users`/`groups` are omitted or null when nobody matches
    - the server spells the evaluation error key `evalutionError`
    """
    if not isinstance(payload, dict):
        raise ReviewError(f"Unexpected review response: {payload!r}")

    eval_err = payload.get("evalutionError") or payload.get("evaluationError") or None
    return ResourceAccessReviewResponse(
        namespace=payload.get("namespace") or NAMESPACE_ALL,
        users=frozenset(u for u in (payload.get("users") or []) if u),
        groups=frozenset(g for g in (payload.get("groups") or []) if g),
        evaluation_error=eval_err,
    )
