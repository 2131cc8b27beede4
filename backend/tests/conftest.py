"""
Pytest configuration file for Overwatch handler tests.

This file contains fixtures and configuration for pytest tests.
"""

import os
import boto3
import pytest
from unittest.mock import MagicMock

from moto import mock_aws

from tests.utils.lambda_test_utils import LambdaContext


@pytest.fixture(scope="function")
def lambda_context():
    """
    Fixture that provides a mock Lambda context object.

    Returns:
        LambdaContext: A mock Lambda context object
    """
    return LambdaContext()


@pytest.fixture(scope="function")
def mock_env_vars(monkeypatch):
    """
    Fixture to override environment variables for a single test.

    Usage:
        def test_something(mock_env_vars):
            mock_env_vars({"PIPELINE_MAX_UNITS": "3"})
    """
    def _set_env_vars(env_vars):
        for key, value in env_vars.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)

    return _set_env_vars


@pytest.fixture(scope="function")
def sqs_client():
    """
    Create the SQS client for testing

    Returns:
        boto3.client: Mocked SQS client
    """
    with mock_aws():
        yield boto3.client("sqs", region_name=os.environ["AWS_REGION"])


@pytest.fixture(scope="function")
def logs_client():
    """Logs client mock; tag and subscription filter responses are set per test"""
    client = MagicMock()
    client.list_tags_for_resource.return_value = {"tags": {}}
    client.describe_subscription_filters.return_value = {"subscriptionFilters": []}
    return client


@pytest.fixture(scope="function")
def sts_client():
    client = MagicMock()
    client.get_caller_identity.return_value = {
        "UserId": "AIDATESTUSER",
        "Account": "123456789012",
        "Arn": "arn:aws:iam::123456789012:user/test",
    }
    client.assume_role.return_value = {
        "Credentials": {
            "AccessKeyId": "ASIATESTACCESSKEY",
            "SecretAccessKey": "test-secret",
            "SessionToken": "test-session-token",
        }
    }
    return client


@pytest.fixture(scope="function")
def no_sleep():
    """Sleep stand-in that records requested delays"""
    return MagicMock()
