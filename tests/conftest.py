"""
Pytest config.

Tests run from a source checkout as well as from an editable install, so we pin the repo
root on sys.path to make `import whocan` work under a global `pytest` entrypoint too.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from whocan.core.models import (  # noqa: E402
    APIResourceInfo,
    AuthorizationAttributes,
    GroupVersionResource,
    ResourceAccessReviewResponse,
)
from whocan.mapper import NoResourceMatchError, StaticRESTMapper  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_env_and_clients(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear WHOCAN_* env and cached Kubernetes clients so tests don't see the host's setup."""
    for name in (
        "WHOCAN_KUBECONFIG",
        "WHOCAN_CONTEXT",
        "WHOCAN_NAMESPACE",
        "WHOCAN_REVIEW_API_GROUP",
        "WHOCAN_REVIEW_API_VERSION",
        "WHOCAN_REQUEST_TIMEOUT_SECONDS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    from whocan.providers import k8s_provider

    k8s_provider._reset_clients()


class FakeMapper:
    """Mapper returning canned answers; anything else is a miss."""

    def __init__(self, answers=None):
        self.answers = dict(answers or {})
        self.calls: List[GroupVersionResource] = []

    def resource_for(self, partial: GroupVersionResource) -> GroupVersionResource:
        self.calls.append(partial)
        if partial in self.answers:
            return self.answers[partial]
        raise NoResourceMatchError(partial)


class FakeReviewer:
    """Records every call; returns the canned response or raises `error`."""

    def __init__(self, response: Optional[ResourceAccessReviewResponse] = None, error: Optional[Exception] = None):
        self.response = response or ResourceAccessReviewResponse()
        self.error = error
        self.calls: List[Tuple[str, Optional[str], AuthorizationAttributes]] = []

    def review_cluster_wide(self, query: AuthorizationAttributes) -> ResourceAccessReviewResponse:
        self.calls.append(("cluster", None, query))
        if self.error is not None:
            raise self.error
        return self.response

    def review_namespace_scoped(self, namespace: str, query: AuthorizationAttributes) -> ResourceAccessReviewResponse:
        self.calls.append(("namespaced", namespace, query))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def discovered_resources() -> List[APIResourceInfo]:
    # Server-preferred order: preferred version first within each group.
    return [
        APIResourceInfo(version="v1", name="pods", singular_name="pod", short_names=["po"], kind="Pod"),
        APIResourceInfo(version="v1", name="pods/log", kind="Pod"),
        APIResourceInfo(version="v1", name="events", singular_name="event", short_names=["ev"], kind="Event"),
        APIResourceInfo(
            version="v1", name="namespaces", singular_name="namespace", short_names=["ns"], namespaced=False
        ),
        APIResourceInfo(
            group="apps", version="v1", name="deployments", singular_name="deployment", short_names=["deploy"]
        ),
        APIResourceInfo(group="apps", version="v1beta1", name="deployments", singular_name="deployment"),
        APIResourceInfo(group="events.k8s.io", version="v1", name="events", singular_name="event", short_names=["ev"]),
        APIResourceInfo(group="build.openshift.io", version="v1", name="builds", singular_name="build"),
        APIResourceInfo(group="build.openshift.io", version="v1beta1", name="builds", singular_name="build"),
        APIResourceInfo(group="metrics.k8s.io", version="v1beta1", name="nodes", singular_name="node"),
        APIResourceInfo(group="custom.example.com", version="v1", name="nodes", singular_name="node"),
    ]


@pytest.fixture
def rest_mapper(discovered_resources) -> StaticRESTMapper:
    return StaticRESTMapper(discovered_resources)


@pytest.fixture
def fake_mapper():
    """Factory for `FakeMapper`: `fake_mapper({partial: answer, ...})`."""
    return FakeMapper


@pytest.fixture
def fake_reviewer():
    """Factory for `FakeReviewer`: `fake_reviewer(response=..., error=...)`."""
    return FakeReviewer
