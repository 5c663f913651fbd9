"""Tests for the start, stop and status callback handlers.

All EC2 calls are mocked — no AWS account required.
"""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from terraserver.handlers import StartHandler, StatusHandler, StopHandler
from terraserver.handlers import start as start_module
from terraserver.handlers import status as status_module
from terraserver.handlers import stop as stop_module
from terraserver.handlers._common import find_state, response


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _body(resp):
    return json.loads(resp["body"])


def _transition(instance_id: str, state: str):
    return {
        "InstanceId": instance_id,
        "CurrentState": {"Code": 0, "Name": state},
        "PreviousState": {"Code": 80, "Name": "stopped"},
    }


def _access_denied(operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": "UnauthorizedOperation", "Message": "not allowed"}},
        operation,
    )


# ---------------------------------------------------------------------------
# Response shaping
# ---------------------------------------------------------------------------


class TestResponse:
    """Tests for the proxy result builder."""

    def test_shape(self):
        resp = response(200, "running")
        assert resp["statusCode"] == 200
        assert resp["isBase64Encoded"] is False
        assert _body(resp) == {"result": "running"}

    def test_cors_header(self):
        assert response(500, "error")["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_headers_not_shared(self):
        first = response(200, "a")
        first["headers"]["X-Extra"] = "1"
        assert "X-Extra" not in response(200, "b")["headers"]


class TestFindState:
    """Tests for find_state."""

    def test_finds_matching_instance(self, instance_id):
        entries = [_transition("i-other", "stopping"), _transition(instance_id, "pending")]
        assert find_state(entries, instance_id, "CurrentState") == "pending"

    def test_absent_instance(self, instance_id):
        assert find_state([_transition("i-other", "pending")], instance_id, "CurrentState") is None

    def test_empty_and_none(self, instance_id):
        assert find_state([], instance_id, "CurrentState") is None
        assert find_state(None, instance_id, "CurrentState") is None

    def test_missing_state_name(self, instance_id):
        assert find_state([{"InstanceId": instance_id}], instance_id, "CurrentState") is None


# ---------------------------------------------------------------------------
# Start / Stop
# ---------------------------------------------------------------------------


class TestStartHandler:
    """Tests for StartHandler."""

    def test_started(self, ec2, instance_id):
        ec2.start_instances.return_value = {
            "StartingInstances": [_transition(instance_id, "pending")],
        }
        resp = StartHandler(instance_id, client_factory=lambda: ec2)()

        ec2.start_instances.assert_called_once_with(InstanceIds=[instance_id])
        assert resp["statusCode"] == 200
        assert _body(resp) == {"result": "pending"}
        assert resp["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_not_in_reply(self, ec2, instance_id):
        ec2.start_instances.return_value = {"StartingInstances": []}
        resp = StartHandler(instance_id, client_factory=lambda: ec2)()
        assert resp["statusCode"] == 404
        assert _body(resp) == {"result": "not found"}

    def test_permission_error_logs_once(self, ec2, instance_id, caplog):
        ec2.start_instances.side_effect = _access_denied("StartInstances")

        with caplog.at_level(logging.ERROR, logger="terraserver.handlers._common"):
            resp = StartHandler(instance_id, client_factory=lambda: ec2)()

        assert resp["statusCode"] == 500
        assert _body(resp) == {"result": "error"}
        assert resp["headers"]["Access-Control-Allow-Origin"] == "*"
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "UnauthorizedOperation" in errors[0].getMessage()

    def test_no_retry(self, ec2, instance_id):
        ec2.start_instances.side_effect = RuntimeError("boom")
        StartHandler(instance_id, client_factory=lambda: ec2)()
        assert ec2.start_instances.call_count == 1

    def test_client_factory_failure_is_500(self, instance_id):
        def broken():
            raise RuntimeError("no credentials")

        resp = StartHandler(instance_id, client_factory=broken)()
        assert resp["statusCode"] == 500

    def test_requires_instance_id(self):
        with pytest.raises(ValueError):
            StartHandler("")


class TestStopHandler:
    """Tests for StopHandler."""

    def test_stopping(self, ec2, instance_id):
        ec2.stop_instances.return_value = {
            "StoppingInstances": [_transition(instance_id, "stopping")],
        }
        resp = StopHandler(instance_id, client_factory=lambda: ec2)()

        ec2.stop_instances.assert_called_once_with(InstanceIds=[instance_id])
        assert resp["statusCode"] == 200
        assert _body(resp) == {"result": "stopping"}

    def test_already_stopped_absent_from_reply(self, ec2, instance_id):
        ec2.stop_instances.return_value = {"StoppingInstances": []}
        resp = StopHandler(instance_id, client_factory=lambda: ec2)()
        assert resp["statusCode"] == 404
        assert _body(resp) == {"result": "not found"}

    def test_reply_without_list(self, ec2, instance_id):
        ec2.stop_instances.return_value = {}
        resp = StopHandler(instance_id, client_factory=lambda: ec2)()
        assert resp["statusCode"] == 404

    def test_other_instances_ignored(self, ec2, instance_id):
        ec2.stop_instances.return_value = {
            "StoppingInstances": [_transition("i-someone-else", "stopping")],
        }
        resp = StopHandler(instance_id, client_factory=lambda: ec2)()
        assert resp["statusCode"] == 404

    def test_error(self, ec2, instance_id):
        ec2.stop_instances.side_effect = _access_denied("StopInstances")
        resp = StopHandler(instance_id, client_factory=lambda: ec2)()
        assert resp["statusCode"] == 500
        assert _body(resp) == {"result": "error"}


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


class TestStatusHandler:
    """Tests for StatusHandler."""

    def test_reports_state(self, ec2, instance_id):
        ec2.describe_instance_status.return_value = {
            "InstanceStatuses": [
                {"InstanceId": instance_id, "InstanceState": {"Code": 80, "Name": "stopped"}},
            ],
        }
        resp = StatusHandler(instance_id, client_factory=lambda: ec2)()

        ec2.describe_instance_status.assert_called_once_with(
            InstanceIds=[instance_id], IncludeAllInstances=True,
        )
        assert resp["statusCode"] == 200
        assert _body(resp) == {"result": "stopped"}

    def test_not_found(self, ec2, instance_id):
        ec2.describe_instance_status.return_value = {"InstanceStatuses": []}
        resp = StatusHandler(instance_id, client_factory=lambda: ec2)()
        assert resp["statusCode"] == 404
        assert _body(resp) == {"result": "not found"}

    def test_error(self, ec2, instance_id):
        ec2.describe_instance_status.side_effect = _access_denied("DescribeInstanceStatus")
        resp = StatusHandler(instance_id, client_factory=lambda: ec2)()
        assert resp["statusCode"] == 500
        assert resp["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_never_mutates(self, ec2, instance_id):
        ec2.describe_instance_status.return_value = {"InstanceStatuses": []}
        StatusHandler(instance_id, client_factory=lambda: ec2)()
        ec2.start_instances.assert_not_called()
        ec2.stop_instances.assert_not_called()


# ---------------------------------------------------------------------------
# Lambda entry points
# ---------------------------------------------------------------------------


class TestLambdaEntry:
    """Tests for the module-level handler functions."""

    def test_instance_id_from_env(self, monkeypatch, ec2, instance_id):
        monkeypatch.setenv("INSTANCE_ID", instance_id)
        ec2.start_instances.return_value = {
            "StartingInstances": [_transition(instance_id, "pending")],
        }
        with patch("terraserver.handlers._common.ec2_client", return_value=ec2):
            resp = start_module.handler({}, None)

        assert resp["statusCode"] == 200
        ec2.start_instances.assert_called_once_with(InstanceIds=[instance_id])

    @pytest.mark.parametrize("module", [start_module, stop_module, status_module])
    def test_missing_instance_id_is_shaped_500(self, monkeypatch, caplog, module):
        monkeypatch.delenv("INSTANCE_ID", raising=False)

        with caplog.at_level(logging.ERROR, logger="terraserver.handlers._common"):
            resp = module.handler({}, None)

        assert resp["statusCode"] == 500
        assert _body(resp) == {"result": "error"}
        assert resp["headers"]["Access-Control-Allow-Origin"] == "*"
        assert "not configured" in caplog.text

    def test_ec2_client_uses_lambda_region(self, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "us-west-2")
        fake_boto3 = MagicMock()
        with patch.dict("sys.modules", {"boto3": fake_boto3}):
            from terraserver.handlers._common import ec2_client

            ec2_client()
        fake_boto3.client.assert_called_once_with("ec2", region_name="us-west-2")
