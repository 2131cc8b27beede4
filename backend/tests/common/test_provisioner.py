"""
Unit tests for the generic ensure-exists routine and caller identity.

Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import pytest
from unittest.mock import MagicMock

from common.identity import CallerIdentity
from common.provisioner import ensure_resource
from models.common import ResourceNotFoundError
from tests.utils.lambda_test_utils import client_error


def _ensure(describe_fn, create_fn):
    return ensure_resource(
        "Queue",
        "ingest-web-queue",
        describe_fn=describe_fn,
        create_fn=create_fn,
        already_exists_codes=["QueueAlreadyExists"],
    )


class TestEnsureResource:
    """Test get-or-create with race handling."""

    def test_existing_resource_is_not_created(self):
        create_fn = MagicMock()

        result = _ensure(MagicMock(return_value="handle-1"), create_fn)

        assert result.already_existed is True
        assert result.handle == "handle-1"
        create_fn.assert_not_called()

    def test_missing_resource_is_created(self):
        result = _ensure(MagicMock(return_value=None), MagicMock(return_value="handle-2"))

        assert result.already_existed is False
        assert result.handle == "handle-2"

    def test_lost_race_returns_winner_handle(self):
        describe_fn = MagicMock(side_effect=[None, "winner"])
        create_fn = MagicMock(side_effect=client_error("QueueAlreadyExists", "CreateQueue"))

        result = _ensure(describe_fn, create_fn)

        assert result.already_existed is True
        assert result.handle == "winner"

    def test_lost_race_retries_describe_once_more(self):
        describe_fn = MagicMock(side_effect=[None, None, "winner"])
        create_fn = MagicMock(side_effect=client_error("QueueAlreadyExists", "CreateQueue"))

        result = _ensure(describe_fn, create_fn)

        assert result.handle == "winner"
        assert describe_fn.call_count == 3

    def test_lost_race_with_nothing_to_describe(self):
        describe_fn = MagicMock(return_value=None)
        create_fn = MagicMock(side_effect=client_error("QueueAlreadyExists", "CreateQueue"))

        with pytest.raises(ResourceNotFoundError):
            _ensure(describe_fn, create_fn)

    def test_other_create_errors_propagate(self):
        create_fn = MagicMock(side_effect=client_error("AccessDenied", "CreateQueue"))

        with pytest.raises(Exception) as exc:
            _ensure(MagicMock(return_value=None), create_fn)

        assert exc.value.response["Error"]["Code"] == "AccessDenied"


class TestCallerIdentity:
    """Test the per-invocation account lookup."""

    def test_account_resolved_once(self, sts_client):
        identity = CallerIdentity(sts_client)

        assert identity.account_id == "123456789012"
        assert identity.partition == "aws"
        assert identity.account_id == "123456789012"
        sts_client.get_caller_identity.assert_called_once()

    def test_log_group_arn(self, sts_client):
        identity = CallerIdentity(sts_client)

        assert identity.log_group_arn("us-east-1", "/app/web") == \
            "arn:aws:logs:us-east-1:123456789012:log-group:/app/web"

    def test_new_instance_resolves_again(self, sts_client):
        CallerIdentity(sts_client).account_id
        CallerIdentity(sts_client).account_id

        assert sts_client.get_caller_identity.call_count == 2
