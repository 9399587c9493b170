"""who-can: list the users and groups allowed to perform a verb on a resource.

Flow (one invocation, no persistent state):
- resolve a loosely typed resource token to a group/version/resource
- dispatch a resource access review (cluster-wide or namespace-scoped)
- render the review response as a deterministic report
"""
