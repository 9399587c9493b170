"""REST mapper: partial group/version/resource -> the canonical resource the API serves.

A mapper is built from API discovery data (see
`whocan.providers.k8s_provider`). Lookup rules:
- the partial resource may be a plural, singular or short name (case-insensitive)
- a non-empty group or version in the partial must match exactly
- with no version requested, the group's preferred version is returned
- subresources (`pods/log`) are never matched
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from whocan.core.models import APIResourceInfo, GroupVersionResource

logger = logging.getLogger(__name__)


class ResourceMappingError(Exception):
    """Base class for lookups the mapper could not answer."""

    def __init__(self, partial: GroupVersionResource, message: str):
        super().__init__(message)
        self.partial = partial


class NoResourceMatchError(ResourceMappingError):
    def __init__(self, partial: GroupVersionResource):
        super().__init__(partial, f"the server doesn't have a resource type {str(partial)!r}")


class AmbiguousResourceError(ResourceMappingError):
    def __init__(self, partial: GroupVersionResource, matches: Sequence[GroupVersionResource]):
        joined = ", ".join(str(m) for m in matches)
        super().__init__(partial, f"{str(partial)!r} matches multiple resources: {joined}")
        self.matches = list(matches)


@runtime_checkable
class RESTMapper(Protocol):
    def resource_for(self, partial: GroupVersionResource) -> GroupVersionResource: ...


class StaticRESTMapper:
    """
    Mapper over a fixed list of discovered resources.

    `resources` must be given in server-preferred order: within a group, the first version
    seen is treated as the preferred one. `group_priority` breaks ties when a bare name exists
    in several groups (core group wins by default, like kubectl's priority mapper).
    """

    def __init__(self, resources: Iterable[APIResourceInfo], group_priority: Optional[Sequence[str]] = None):
        self._resources: List[APIResourceInfo] = [r for r in resources if "/" not in r.name]
        self._version_order: Dict[str, List[str]] = {}
        for r in self._resources:
            versions = self._version_order.setdefault(r.group, [])
            if r.version not in versions:
                versions.append(r.version)
        self._group_priority: List[str] = list(group_priority) if group_priority is not None else [""]

    def __len__(self) -> int:
        return len(self._resources)

    def _group_rank(self, group: str) -> int:
        try:
            return self._group_priority.index(group)
        except ValueError:
            return len(self._group_priority)

    def _version_rank(self, group: str, version: str) -> int:
        versions = self._version_order.get(group) or []
        try:
            return versions.index(version)
        except ValueError:
            return len(versions)

    def resources_for(self, partial: GroupVersionResource) -> List[GroupVersionResource]:
        """All matches for a partial reference, preferred first."""
        wanted = (partial.resource or "").strip().lower()
        if not wanted:
            return []
        group = partial.group.lower()
        version = partial.version.lower()

        hits: List[APIResourceInfo] = []
        for r in self._resources:
            if group and r.group.lower() != group:
                continue
            if version and r.version.lower() != version:
                continue
            if wanted in r.names():
                hits.append(r)

        hits.sort(key=lambda r: (self._group_rank(r.group), self._version_rank(r.group, r.version)))

        out: List[GroupVersionResource] = []
        for r in hits:
            gvr = GroupVersionResource(group=r.group, version=r.version, resource=r.name.lower())
            if gvr not in out:
                out.append(gvr)
        return out

    def resource_for(self, partial: GroupVersionResource) -> GroupVersionResource:
        matches = self.resources_for(partial)
        if not matches:
            raise NoResourceMatchError(partial)

        best = matches[0]
        distinct_groups = {m.group for m in matches}
        if len(distinct_groups) > 1:
            # A single group ranked above the rest settles it; equal ranks stay ambiguous.
            top_rank = self._group_rank(best.group)
            contenders = [m for m in matches if self._group_rank(m.group) == top_rank]
            if len({m.group for m in contenders}) > 1:
                raise AmbiguousResourceError(partial, contenders)

        logger.debug("Mapped %s -> %s", partial, best)
        return best
