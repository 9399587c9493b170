"""who-can pipeline: raw args -> resolved resource -> query -> review -> result.

Collaborators (mapper, reviewer) are passed in; nothing here touches the cluster directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

from whocan.core.models import AuthorizationAttributes, GroupVersionResource, ResourceAccessReviewResponse, ReviewOptions
from whocan.mapper import RESTMapper
from whocan.resolve import resource_for
from whocan.review import Reviewer, dispatch, review_scope_for

logger = logging.getLogger(__name__)

USAGE_MESSAGE = "you must specify two arguments: verb and resource"


class UsageError(ValueError):
    pass


@dataclass(frozen=True)
class WhoCanRequest:
    verb: str
    resource: GroupVersionResource

    def query(self) -> AuthorizationAttributes:
        return AuthorizationAttributes.for_resource(self.verb, self.resource)


def parse_args(args: Sequence[str]) -> Tuple[str, str]:
    if len(args) != 2:
        raise UsageError(USAGE_MESSAGE)
    verb, token = args
    return verb, token


def complete(args: Sequence[str], mapper: RESTMapper) -> WhoCanRequest:
    """Validate positional args and resolve the resource token."""
    verb, token = parse_args(args)
    return WhoCanRequest(verb=verb, resource=resource_for(mapper, token))


def run_who_can(
    request: WhoCanRequest, options: ReviewOptions, reviewer: Reviewer
) -> ResourceAccessReviewResponse:
    query = request.query()
    scope = review_scope_for(options)
    logger.info(f"Reviewing verb={query.verb} resource={query.resource_display()} scope={scope.scope}")
    result = dispatch(query, scope, reviewer)
    if result.evaluation_error:
        logger.warning(f"Error during evaluation, results may not be complete: {result.evaluation_error}")
    return result
