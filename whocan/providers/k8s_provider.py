"""Kubernetes API access: discovery (for the REST mapper), access reviews and current namespace."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from whocan.config import Settings, load_settings
from whocan.core.models import APIResourceInfo, AuthorizationAttributes, ResourceAccessReviewResponse
from whocan.mapper import StaticRESTMapper
from whocan.review import (
    Reviewer,
    ReviewError,
    local_resource_access_review_body,
    parse_review_response,
    resource_access_review_body,
)

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_NAMESPACE_PATH = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")
DEFAULT_NAMESPACE = "default"

_api_client = None
_custom_objects_api = None
_init_lock = threading.Lock()


class KubernetesConfigError(ReviewError):
    """Neither in-cluster config nor a usable kubeconfig could be loaded."""


def _reset_clients() -> None:
    """Drop cached clients (tests, or switching kubeconfig in-process)."""
    global _api_client, _custom_objects_api
    with _init_lock:
        _api_client = None
        _custom_objects_api = None


def _get_api_client(settings: Settings):
    """
    Return a cached ApiClient.

    In-cluster config is tried first unless a kubeconfig path or context was configured
    explicitly, in which case the kubeconfig is loaded directly.
    """
    global _api_client

    if _api_client is not None:
        return _api_client

    with _init_lock:
        if _api_client is not None:
            return _api_client

        from kubernetes import client, config

        explicit = bool(settings.kubeconfig or settings.context)
        try:
            if explicit:
                config.load_kube_config(config_file=settings.kubeconfig, context=settings.context)
            else:
                try:
                    config.load_incluster_config()
                except config.ConfigException:
                    config.load_kube_config()
        except Exception as e:
            raise KubernetesConfigError(f"Failed to load Kubernetes configuration: {e}")

        _api_client = client.ApiClient()
        return _api_client


def _get_custom_objects(settings: Settings):
    """Return a cached CustomObjectsApi (thread-safe lazy init)."""
    global _custom_objects_api
    if _custom_objects_api is not None:
        return _custom_objects_api

    api_client = _get_api_client(settings)
    with _init_lock:
        if _custom_objects_api is None:
            from kubernetes import client

            _custom_objects_api = client.CustomObjectsApi(api_client)
        return _custom_objects_api


def _get_resource_list(api_client, path: str, path_params: Dict[str, str], timeout: int):
    return api_client.call_api(
        path,
        "GET",
        path_params=path_params,
        header_params={"Accept": "application/json"},
        response_type="V1APIResourceList",
        auth_settings=["BearerToken"],
        _return_http_data_only=True,
        _request_timeout=timeout,
    )


def _resource_infos(resource_list: Any, *, group: str, version: str) -> List[APIResourceInfo]:
    out: List[APIResourceInfo] = []
    for r in getattr(resource_list, "resources", None) or []:
        name = getattr(r, "name", None)
        if not name or "/" in name:
            continue
        out.append(
            APIResourceInfo(
                group=group,
                version=version,
                name=name,
                singular_name=getattr(r, "singular_name", None) or "",
                short_names=list(getattr(r, "short_names", None) or []),
                namespaced=bool(getattr(r, "namespaced", True)),
                kind=getattr(r, "kind", None) or "",
            )
        )
    return out


def discover_api_resources(settings: Optional[Settings] = None) -> List[APIResourceInfo]:
    """
    Read API discovery (`/api` + `/apis`) and return every served resource.

    Within a group, the server's preferred version comes first. A group version whose
    discovery call fails (e.g. an unavailable aggregated API) is skipped with a warning.
    If `/apis` itself cannot be listed, the core resources are still returned.
    """
    settings = settings or load_settings()
    api_client = _get_api_client(settings)
    timeout = settings.request_timeout_seconds

    from kubernetes import client

    resources: List[APIResourceInfo] = []

    core_versions = client.CoreApi(api_client).get_api_versions(_request_timeout=timeout)
    for version in getattr(core_versions, "versions", None) or []:
        try:
            rl = _get_resource_list(api_client, "/api/{version}", {"version": version}, timeout)
        except Exception as e:
            logger.warning(f"Discovery failed for core/{version}: {e}")
            continue
        resources.extend(_resource_infos(rl, group="", version=version))

    try:
        group_list = client.ApisApi(api_client).get_api_versions(_request_timeout=timeout)
    except Exception as e:
        logger.warning(f"Discovery failed for /apis, only core resources will resolve: {e}")
        group_list = None
    for g in getattr(group_list, "groups", None) or []:
        preferred = getattr(getattr(g, "preferred_version", None), "version", None)
        versions = [gv.version for gv in (getattr(g, "versions", None) or []) if getattr(gv, "version", None)]
        if preferred in versions:
            versions.remove(preferred)
            versions.insert(0, preferred)
        for version in versions:
            try:
                rl = _get_resource_list(
                    api_client, "/apis/{group}/{version}", {"group": g.name, "version": version}, timeout
                )
            except Exception as e:
                logger.warning(f"Discovery failed for {g.name}/{version}: {e}")
                continue
            resources.extend(_resource_infos(rl, group=g.name, version=version))

    logger.debug("Discovered %d resources", len(resources))
    return resources


def get_rest_mapper(settings: Optional[Settings] = None) -> StaticRESTMapper:
    """
    Build a mapper from live discovery.

    Discovery failing is not fatal: an empty mapper makes every lookup miss, so resolution
    falls back to the raw token.
    """
    try:
        return StaticRESTMapper(discover_api_resources(settings))
    except Exception as e:
        logger.warning(f"API discovery unavailable, resource names will not be resolved: {e}")
        return StaticRESTMapper([])


class KubernetesReviewer:
    """Reviewer backed by the cluster's (Local)ResourceAccessReview API."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or load_settings()

    def _create(self, *, namespace: Optional[str], body: Dict[str, Any]) -> Dict[str, Any]:
        s = self.settings
        try:
            api = _get_custom_objects(s)
            if namespace is None:
                return api.create_cluster_custom_object(
                    group=s.review_api_group,
                    version=s.review_api_version,
                    plural="resourceaccessreviews",
                    body=body,
                    _request_timeout=s.request_timeout_seconds,
                )
            return api.create_namespaced_custom_object(
                group=s.review_api_group,
                version=s.review_api_version,
                namespace=namespace,
                plural="localresourceaccessreviews",
                body=body,
                _request_timeout=s.request_timeout_seconds,
            )
        except ReviewError:
            raise
        except Exception as e:
            from kubernetes.client.rest import ApiException

            if isinstance(e, ApiException):
                raise ReviewError(f"Kubernetes API error: {e.reason} - {e.body}")
            raise ReviewError(f"Failed to create resource access review: {str(e)}")

    def review_cluster_wide(self, query: AuthorizationAttributes) -> ResourceAccessReviewResponse:
        s = self.settings
        body = resource_access_review_body(query, api_group=s.review_api_group, api_version=s.review_api_version)
        return parse_review_response(self._create(namespace=None, body=body))

    def review_namespace_scoped(self, namespace: str, query: AuthorizationAttributes) -> ResourceAccessReviewResponse:
        s = self.settings
        body = local_resource_access_review_body(
            namespace, query, api_group=s.review_api_group, api_version=s.review_api_version
        )
        return parse_review_response(self._create(namespace=namespace, body=body))


def get_reviewer(settings: Optional[Settings] = None) -> Reviewer:
    """Seam for swapping reviewer implementations (tests use a fake)."""
    return KubernetesReviewer(settings)


def _kubeconfig_namespace(settings: Settings) -> Optional[str]:
    from kubernetes import config

    contexts, active = config.list_kube_config_contexts(config_file=settings.kubeconfig)
    ctx = active
    if settings.context:
        ctx = next((c for c in contexts or [] if c.get("name") == settings.context), None)
    return ((ctx or {}).get("context") or {}).get("namespace")


def current_namespace(settings: Optional[Settings] = None) -> str:
    """
    The namespace a scoped review runs in when none is given.

    Order: configured namespace, in-cluster service account namespace (unless a kubeconfig
    or context was set explicitly), kubeconfig context namespace, then "default".
    """
    settings = settings or load_settings()
    if settings.namespace:
        return settings.namespace

    explicit = bool(settings.kubeconfig or settings.context)
    if not explicit and SERVICE_ACCOUNT_NAMESPACE_PATH.exists():
        try:
            ns = SERVICE_ACCOUNT_NAMESPACE_PATH.read_text().strip()
            if ns:
                return ns
        except OSError as e:
            logger.debug(f"Could not read service account namespace: {e}")

    try:
        ns = _kubeconfig_namespace(settings)
        if ns:
            return ns
    except Exception as e:
        logger.debug(f"No namespace from kubeconfig: {e}")

    return DEFAULT_NAMESPACE
