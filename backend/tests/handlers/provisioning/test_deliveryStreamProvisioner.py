import pytest
from unittest.mock import MagicMock

from common.identity import CallerIdentity
from handlers.provisioning.deliveryStreamProvisioner import DeliveryStreamProvisioner
from handlers.provisioning.logGroupProvisioner import LogGroupProvisioner
from models.common import ActivationFailedError, ActivationTimeoutError
from tests.utils.lambda_test_utils import client_error

STREAM_NAME = "AutoLog-logs-acme-web"
STREAM_ARN = f"arn:aws:firehose:us-east-1:123456789012:deliverystream/{STREAM_NAME}"
ROLE_ARN = "arn:aws:iam::123456789012:role/autolog-delivery-stream-role"
LOG_GROUP = "/overwatch/autolog/delivery-streams"


def _description(status):
    return {"DeliveryStreamDescription": {
        "DeliveryStreamName": STREAM_NAME,
        "DeliveryStreamARN": STREAM_ARN,
        "DeliveryStreamStatus": status,
    }}


@pytest.fixture
def firehose_client():
    client = MagicMock()
    client.create_delivery_stream.return_value = {"DeliveryStreamARN": STREAM_ARN}
    return client


@pytest.fixture
def provisioner(firehose_client, logs_client, sts_client):
    return DeliveryStreamProvisioner(
        firehose_client, LogGroupProvisioner(logs_client), CallerIdentity(sts_client), "us-east-1")


class TestEnsureDeliveryStream:

    def test_existing_stream(self, provisioner, firehose_client):
        firehose_client.describe_delivery_stream.return_value = _description("ACTIVE")

        result = provisioner.ensure_delivery_stream("logs-acme", "web", ROLE_ARN, LOG_GROUP)

        assert result.already_existed is True
        assert result.handle == STREAM_ARN
        firehose_client.create_delivery_stream.assert_not_called()

    def test_missing_stream_is_created(self, provisioner, firehose_client, logs_client):
        firehose_client.describe_delivery_stream.side_effect = client_error(
            "ResourceNotFoundException", "DescribeDeliveryStream")

        result = provisioner.ensure_delivery_stream("logs-acme", "web", ROLE_ARN, LOG_GROUP)

        assert result.already_existed is False
        assert result.handle == STREAM_ARN
        logs_client.create_log_stream.assert_called_once_with(logGroupName=LOG_GROUP, logStreamName=STREAM_NAME)

        kwargs = firehose_client.create_delivery_stream.call_args.kwargs
        destination = kwargs["ExtendedS3DestinationConfiguration"]
        assert kwargs["DeliveryStreamName"] == STREAM_NAME
        assert kwargs["DeliveryStreamType"] == "DirectPut"
        assert destination["BucketARN"] == "arn:aws:s3:::logs-acme"
        assert destination["Prefix"] == "autolog/web/123456789012/us-east-1/"
        assert destination["BufferingHints"] == {"SizeInMBs": 128, "IntervalInSeconds": 60}
        assert destination["CompressionFormat"] == "GZIP"
        assert destination["CloudWatchLoggingOptions"]["LogStreamName"] == STREAM_NAME
        assert [p["Type"] for p in destination["ProcessingConfiguration"]["Processors"]] == \
            ["Decompression", "CloudWatchLogProcessing"]
        assert destination["S3BackupMode"] == "Disabled"

    def test_concurrent_create(self, provisioner, firehose_client):
        firehose_client.describe_delivery_stream.side_effect = [
            client_error("ResourceNotFoundException", "DescribeDeliveryStream"),
            _description("CREATING"),
        ]
        firehose_client.create_delivery_stream.side_effect = client_error(
            "ResourceInUseException", "CreateDeliveryStream")

        result = provisioner.ensure_delivery_stream("logs-acme", "web", ROLE_ARN, LOG_GROUP)

        assert result.already_existed is True
        assert result.handle == STREAM_ARN


class TestWaitForActivation:

    def test_active_after_creating(self, provisioner, firehose_client, no_sleep):
        firehose_client.describe_delivery_stream.side_effect = [
            _description("CREATING"),
            _description("CREATING"),
            _description("ACTIVE"),
        ]

        details = provisioner.wait_for_activation(STREAM_NAME, sleep_fn=no_sleep)

        assert details.status == "ACTIVE"
        assert details.arn == STREAM_ARN
        assert firehose_client.describe_delivery_stream.call_count == 3
        assert no_sleep.call_count == 2

    def test_stream_disappears(self, provisioner, firehose_client, no_sleep):
        firehose_client.describe_delivery_stream.side_effect = [
            _description("CREATING"),
            client_error("ResourceNotFoundException", "DescribeDeliveryStream"),
        ]

        with pytest.raises(ActivationFailedError):
            provisioner.wait_for_activation(STREAM_NAME, sleep_fn=no_sleep)

    def test_creating_failed(self, provisioner, firehose_client, no_sleep):
        firehose_client.describe_delivery_stream.return_value = _description("CREATING_FAILED")

        with pytest.raises(ActivationFailedError) as exc:
            provisioner.wait_for_activation(STREAM_NAME, sleep_fn=no_sleep)

        assert exc.value.status == "CREATING_FAILED"

    def test_timeout(self, provisioner, firehose_client, no_sleep):
        firehose_client.describe_delivery_stream.return_value = _description("CREATING")

        with pytest.raises(ActivationTimeoutError):
            provisioner.wait_for_activation(STREAM_NAME, max_attempts=4, sleep_fn=no_sleep)

        assert firehose_client.describe_delivery_stream.call_count == 4
