from __future__ import annotations

import json
import logging

import pytest
from click.testing import CliRunner

from whocan.cli import _configure_logging, main
from whocan.config import Settings
from whocan.core.models import ResourceAccessReviewResponse
from whocan.review import ReviewError


@pytest.fixture
def wired(monkeypatch: pytest.MonkeyPatch, rest_mapper, fake_reviewer):
    """Replace the cluster-backed seams with in-memory fakes; returns the reviewer + captured settings."""
    state = {
        "reviewer": fake_reviewer(
            response=ResourceAccessReviewResponse(
                namespace="default", users=frozenset({"bob", "alice"}), groups=frozenset()
            )
        ),
        "settings": [],
    }

    def _get_rest_mapper(settings=None):
        state["settings"].append(settings)
        return rest_mapper

    def _get_reviewer(settings=None):
        return state["reviewer"]

    monkeypatch.setattr("whocan.providers.k8s_provider.get_rest_mapper", _get_rest_mapper)
    monkeypatch.setattr("whocan.providers.k8s_provider.get_reviewer", _get_reviewer)

    def _current_namespace(settings=None):
        return (settings.namespace if settings else None) or "default"

    monkeypatch.setattr("whocan.providers.k8s_provider.current_namespace", _current_namespace)
    return state


def test_wrong_arg_count_is_usage_error(wired) -> None:
    result = CliRunner().invoke(main, ["get"])
    assert result.exit_code == 2
    assert "you must specify two arguments: verb and resource" in result.output
    # Rejected before any resolution attempt.
    assert wired["settings"] == []
    assert wired["reviewer"].calls == []


def test_too_many_args_is_usage_error(wired) -> None:
    result = CliRunner().invoke(main, ["get", "pods", "extra"])
    assert result.exit_code == 2


def test_text_report_current_namespace(wired) -> None:
    result = CliRunner().invoke(main, ["get", "po"])
    assert result.exit_code == 0, result.output
    assert result.output == (
        "Namespace: default\n"
        "Verb:      get\n"
        "Resource:  pods\n"
        "\n"
        "Users:  alice\n"
        "        bob\n"
        "\n"
        "Groups: none\n"
        "\n"
    )
    assert [(c[0], c[1]) for c in wired["reviewer"].calls] == [("namespaced", "default")]


def test_all_namespaces_uses_cluster_review(wired) -> None:
    wired["reviewer"].response = ResourceAccessReviewResponse(namespace="", groups=frozenset({"system:admins"}))
    result = CliRunner().invoke(main, ["get", "pods", "--all-namespaces"])
    assert result.exit_code == 0, result.output
    assert "Namespace: <all>\n" in result.output
    assert "Users:  none\n" in result.output
    assert "Groups: system:admins\n" in result.output
    assert [c[0] for c in wired["reviewer"].calls] == ["cluster"]


def test_namespace_flag_overrides(wired) -> None:
    result = CliRunner().invoke(main, ["create", "deployments.apps", "-n", "team-a"])
    assert result.exit_code == 0, result.output
    kind, namespace, query = wired["reviewer"].calls[0]
    assert (kind, namespace) == ("namespaced", "team-a")
    assert (query.group, query.resource) == ("apps", "deployments")
    assert "Resource:  deployments.apps\n" in result.output
    assert wired["settings"][0].namespace == "team-a"


def test_unresolved_resource_shown_as_typed(wired) -> None:
    result = CliRunner().invoke(main, ["get", "Widgets"])
    assert result.exit_code == 0, result.output
    assert "Resource:  Widgets\n" in result.output


def test_json_output(wired) -> None:
    result = CliRunner().invoke(main, ["list", "pods", "-o", "json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "namespace": "default",
        "verb": "list",
        "resource": "pods",
        "users": ["alice", "bob"],
        "groups": [],
    }


def test_review_failure_exits_nonzero(wired) -> None:
    wired["reviewer"].error = ReviewError("Kubernetes API error: Forbidden - denied")
    result = CliRunner().invoke(main, ["get", "pods"])
    assert result.exit_code == 1
    assert "Error: Kubernetes API error: Forbidden - denied" in result.output
    assert "Namespace:" not in result.output


def test_context_and_kubeconfig_flags_reach_settings(wired, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WHOCAN_CONTEXT", "from-env")
    result = CliRunner().invoke(main, ["get", "pods", "--context", "prod", "--kubeconfig", "/tmp/kc"])
    assert result.exit_code == 0, result.output
    settings = wired["settings"][0]
    assert settings.context == "prod"
    assert settings.kubeconfig == "/tmp/kc"


def test_evaluation_error_logged_and_report_unchanged(wired, caplog: pytest.LogCaptureFixture) -> None:
    wired["reviewer"].response = ResourceAccessReviewResponse(
        namespace="default", users=frozenset({"alice"}), evaluation_error="role missing"
    )
    with caplog.at_level(logging.WARNING, logger="whocan.command"):
        result = CliRunner().invoke(main, ["get", "pods"])

    assert result.exit_code == 0, result.output
    assert result.output.startswith("Namespace: default\nVerb:      get\nResource:  pods\n\nUsers:  alice\n")
    assert "role missing" not in result.output
    assert [r.getMessage() for r in caplog.records if r.name == "whocan.command"] == [
        "Error during evaluation, results may not be complete: role missing"
    ]


def test_non_review_errors_are_not_reported_as_review_failures(wired) -> None:
    wired["reviewer"].error = TypeError("bug")
    result = CliRunner().invoke(main, ["get", "pods"])
    assert result.exit_code == 1
    assert isinstance(result.exception, TypeError)
    assert "Error: bug" not in result.output


@pytest.fixture
def bare_root_logger():
    """Root logger without handlers so `logging.basicConfig` takes effect; restored afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers = []
    yield root
    for h in root.handlers:
        h.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_verbose_forces_debug(bare_root_logger) -> None:
    _configure_logging(Settings(log_level="ERROR"), verbose=True)
    assert bare_root_logger.level == logging.DEBUG


def test_log_level_from_settings(bare_root_logger) -> None:
    _configure_logging(Settings(log_level="info"), verbose=False)
    assert bare_root_logger.level == logging.INFO


@pytest.mark.parametrize("raw", ["basic_format", "getLogger", "", "verbose"])
def test_unknown_log_level_falls_back_to_warning(bare_root_logger, raw: str) -> None:
    _configure_logging(Settings(log_level=raw), verbose=False)
    assert bare_root_logger.level == logging.WARNING


def test_bad_log_level_env_does_not_break_command(wired, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "basic_format")
    result = CliRunner().invoke(main, ["get", "pods"])
    assert result.exit_code == 0, result.output
