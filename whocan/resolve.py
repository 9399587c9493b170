"""Resource token resolution.

`resource_for()` is total: it never raises. Strategies are tried in order and the first one
that yields a reference wins:
1. fully specified `resource.version.group` (only when the token has at least two dots)
2. group-resource with no version (the mapper picks its preferred version)
3. the raw token as the resource name, group and version empty
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from whocan.core.models import GroupResource, GroupVersionResource
from whocan.mapper import RESTMapper

logger = logging.getLogger(__name__)

Strategy = Callable[[RESTMapper, str], Optional[GroupVersionResource]]


def parse_group_resource(arg: str) -> GroupResource:
    """`deployments.apps` -> GroupResource(group="apps", resource="deployments")."""
    resource, sep, group = arg.partition(".")
    if not sep:
        return GroupResource(resource=arg)
    return GroupResource(group=group, resource=resource)


def parse_resource_arg(arg: str) -> Tuple[Optional[GroupVersionResource], GroupResource]:
    """
    Split a resource argument into its possible interpretations.

    Returns (fully_specified, group_resource). `fully_specified` is only set when the token
    holds at least two dots; the group keeps any dots beyond the second:
      builds.v1.build.openshift.io -> resource=builds, version=v1, group=build.openshift.io
    """
    fully_specified: Optional[GroupVersionResource] = None
    if arg.count(".") >= 2:
        resource, version, group = arg.split(".", 2)
        fully_specified = GroupVersionResource(group=group, version=version, resource=resource)
    return fully_specified, parse_group_resource(arg)


def _lookup(mapper: RESTMapper, partial: GroupVersionResource) -> Optional[GroupVersionResource]:
    try:
        gvr = mapper.resource_for(partial)
    except Exception as e:
        # Any lookup failure is a miss; the next strategy gets a turn.
        logger.debug("No mapping for %s: %s", partial, e)
        return None
    if gvr is None or gvr.is_empty():
        return None
    return gvr


def _fully_specified(mapper: RESTMapper, token: str) -> Optional[GroupVersionResource]:
    fully_specified, _ = parse_resource_arg(token.lower())
    if fully_specified is None:
        return None
    return _lookup(mapper, fully_specified)


def _group_resource(mapper: RESTMapper, token: str) -> Optional[GroupVersionResource]:
    _, group_resource = parse_resource_arg(token.lower())
    return _lookup(mapper, group_resource.with_version(""))


def _raw_token(_mapper: RESTMapper, token: str) -> Optional[GroupVersionResource]:
    # Shown as typed; the report then displays the token itself as the resource.
    return GroupVersionResource(resource=token)


RESOLUTION_STRATEGIES: List[Strategy] = [_fully_specified, _group_resource, _raw_token]


def resource_for(mapper: RESTMapper, token: str) -> GroupVersionResource:
    """Resolve a user supplied resource token; never raises."""
    for strategy in RESOLUTION_STRATEGIES:
        gvr = strategy(mapper, token)
        if gvr is not None:
            logger.debug("Resolved %r via %s -> %s", token, strategy.__name__, gvr)
            return gvr
    return GroupVersionResource(resource=token)
