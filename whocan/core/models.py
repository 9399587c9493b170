"""Canonical domain models (single source of truth).

This file is the one place where we define models used across:
- resource resolution (raw token -> group/version/resource)
- review dispatch (authorization attributes + scope)
- rendering (text/JSON reports)

Design note:
- Everything here is immutable once built. A resolved reference, the query built from it
  and the server's review response are never mutated after construction.
"""

from __future__ import annotations

from typing import Annotated, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Namespace value the review API uses to mean "every namespace".
NAMESPACE_ALL = ""


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class BaseModelFrozen(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class GroupResource(BaseModelFrozen):
    group: str = ""
    resource: str = ""

    def with_version(self, version: str) -> "GroupVersionResource":
        return GroupVersionResource(group=self.group, version=version, resource=self.resource)

    def is_empty(self) -> bool:
        return not self.group and not self.resource

    def __str__(self) -> str:
        if not self.group:
            return self.resource
        return f"{self.resource}.{self.group}"


class GroupVersionResource(BaseModelFrozen):
    """
    A (group, version, resource) coordinate.

    The all-blank value is the "not resolved" sentinel. An empty version is also what you
    get for "no version requested", the two cases are not distinguished.
    """

    group: str = ""
    version: str = ""
    resource: str = ""

    def is_empty(self) -> bool:
        return not self.group and not self.version and not self.resource

    def group_resource(self) -> GroupResource:
        return GroupResource(group=self.group, resource=self.resource)

    def __str__(self) -> str:
        return ".".join(p for p in (self.resource, self.version, self.group) if p)


class APIResourceInfo(BaseModelFrozen):
    """One resource as advertised by API discovery for a single group version."""

    group: str = ""
    version: str
    name: str  # plural, e.g. "deployments"
    singular_name: str = ""
    short_names: List[str] = Field(default_factory=list)
    namespaced: bool = True
    kind: str = ""

    def names(self) -> List[str]:
        out = [self.name.lower()]
        if self.singular_name:
            out.append(self.singular_name.lower())
        out.extend(s.lower() for s in self.short_names if s)
        return out


class AuthorizationAttributes(BaseModelFrozen):
    """The question being asked: who can `verb` on `resource` in API group `group`."""

    verb: str
    group: str = ""
    resource: str = ""

    @classmethod
    def for_resource(cls, verb: str, gvr: GroupVersionResource) -> "AuthorizationAttributes":
        # Group and resource must come from the same resolved reference.
        return cls(verb=verb, group=gvr.group, resource=gvr.resource)

    def resource_display(self) -> str:
        return str(GroupResource(group=self.group, resource=self.resource))


class ReviewOptions(BaseModelStrict):
    all_namespaces: bool = False
    namespace: str = ""


class ClusterWide(BaseModelFrozen):
    scope: Literal["cluster"] = "cluster"


class Namespaced(BaseModelFrozen):
    scope: Literal["namespaced"] = "namespaced"
    namespace: str


ReviewScope = Annotated[Union[ClusterWide, Namespaced], Field(discriminator="scope")]


class ResourceAccessReviewResponse(BaseModelFrozen):
    namespace: str = NAMESPACE_ALL
    users: FrozenSet[str] = Field(default_factory=frozenset)
    groups: FrozenSet[str] = Field(default_factory=frozenset)
    # Set by the server when some policy could not be evaluated (results may be incomplete).
    evaluation_error: Optional[str] = None

    def sorted_users(self) -> List[str]:
        return sorted(self.users)

    def sorted_groups(self) -> List[str]:
        return sorted(self.groups)
