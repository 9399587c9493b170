"""Runtime settings (env driven, CLI flags override).

Recommended vars:
- WHOCAN_KUBECONFIG=/path/to/kubeconfig
- WHOCAN_CONTEXT=my-context
- WHOCAN_NAMESPACE=my-namespace
- WHOCAN_REVIEW_API_GROUP=authorization.openshift.io
- WHOCAN_REVIEW_API_VERSION=v1
- WHOCAN_REQUEST_TIMEOUT_SECONDS=30
- LOG_LEVEL=WARNING
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from whocan.review import REVIEW_API_GROUP, REVIEW_API_VERSION


def _env_str(name: str) -> Optional[str]:
    raw = (os.getenv(name) or "").strip()
    return raw or None


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        return default


@dataclass(frozen=True)
class Settings:
    # Cluster access (None -> client library defaults, i.e. KUBECONFIG / ~/.kube/config)
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    # Namespace override; None -> current namespace from the environment/kubeconfig
    namespace: Optional[str] = None

    # Review API coordinates
    review_api_group: str = REVIEW_API_GROUP
    review_api_version: str = REVIEW_API_VERSION

    request_timeout_seconds: int = 30
    log_level: str = "WARNING"


def load_settings() -> Settings:
    timeout = _env_int("WHOCAN_REQUEST_TIMEOUT_SECONDS", 30)
    return Settings(
        kubeconfig=_env_str("WHOCAN_KUBECONFIG"),
        context=_env_str("WHOCAN_CONTEXT"),
        namespace=_env_str("WHOCAN_NAMESPACE"),
        review_api_group=_env_str("WHOCAN_REVIEW_API_GROUP") or REVIEW_API_GROUP,
        review_api_version=_env_str("WHOCAN_REVIEW_API_VERSION") or REVIEW_API_VERSION,
        request_timeout_seconds=timeout if timeout > 0 else 30,
        log_level=(_env_str("LOG_LEVEL") or "WARNING").upper(),
    )
