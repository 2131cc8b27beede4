# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import time
from typing import Optional
from botocore.exceptions import ClientError
from common import client_error_code
from common.constants import (
    ACTIVATION_MAX_ATTEMPTS,
    ACTIVATION_POLL_INTERVAL_SECONDS,
    AUTOMATION_TAGS,
    DELIVERY_STREAM_BUFFER_MB,
    DELIVERY_STREAM_BUFFER_SECONDS,
)
from common.identity import CallerIdentity
from common.poller import wait_until_ready
from common.provisioner import ensure_resource
from customLogging.logger import safeLogger
from handlers.provisioning.logGroupProvisioner import LogGroupProvisioner
from models.common import EnsureResult
from models.resources import DeliveryStreamDetails, bucket_arn, delivery_stream_name, require_valid

logger = safeLogger(service="DeliveryStreamProvisioner")

STATUS_ACTIVE = "ACTIVE"
STATUS_CREATING = "CREATING"


class DeliveryStreamProvisioner:
    """Firehose delivery streams that ship CloudWatch Logs into an S3 bucket"""

    def __init__(self, firehose_client, log_groups: LogGroupProvisioner, identity: CallerIdentity, region: str):
        self.firehose_client = firehose_client
        self.log_groups = log_groups
        self.identity = identity
        self.region = region

    def get_delivery_stream(self, name: str) -> Optional[DeliveryStreamDetails]:
        try:
            response = self.firehose_client.describe_delivery_stream(DeliveryStreamName=name)
        except ClientError as e:
            if client_error_code(e) == "ResourceNotFoundException":
                return None
            raise
        description = response["DeliveryStreamDescription"]
        return DeliveryStreamDetails(
            arn=description["DeliveryStreamARN"],
            status=description["DeliveryStreamStatus"],
        )

    def create_delivery_stream(self, name: str, bucket_name: str, index_name: str,
                               role_arn: str, log_group_name: str) -> str:
        logger.info(f"Creating delivery stream {name} for {bucket_name}/{index_name}")
        self.log_groups.ensure_log_stream(log_group_name, name)
        response = self.firehose_client.create_delivery_stream(
            DeliveryStreamName=name,
            DeliveryStreamType="DirectPut",
            ExtendedS3DestinationConfiguration={
                "RoleARN": role_arn,
                "BucketARN": bucket_arn(bucket_name),
                "Prefix": f"autolog/{index_name}/{self.identity.account_id}/{self.region}/",
                "BufferingHints": {
                    "SizeInMBs": DELIVERY_STREAM_BUFFER_MB,
                    "IntervalInSeconds": DELIVERY_STREAM_BUFFER_SECONDS,
                },
                "CompressionFormat": "GZIP",
                "CloudWatchLoggingOptions": {
                    "Enabled": True,
                    "LogGroupName": log_group_name,
                    "LogStreamName": name,
                },
                "ProcessingConfiguration": {
                    "Enabled": True,
                    "Processors": [
                        {
                            "Type": "Decompression",
                            "Parameters": [
                                {"ParameterName": "NumberOfRetries", "ParameterValue": "3"},
                            ],
                        },
                        {
                            "Type": "CloudWatchLogProcessing",
                            "Parameters": [
                                {"ParameterName": "DataMessageExtraction", "ParameterValue": "True"},
                            ],
                        },
                    ],
                },
                "S3BackupMode": "Disabled",
            },
            Tags=[{"Key": k, "Value": v} for k, v in AUTOMATION_TAGS.items()],
        )
        return response["DeliveryStreamARN"]

    def ensure_delivery_stream(self, bucket_name: str, index_name: str,
                               role_arn: str, log_group_name: str) -> EnsureResult:
        name = delivery_stream_name(bucket_name, index_name)
        require_valid({
            'bucketName': {
                'value': bucket_name,
                'validator': 'BUCKET_NAME'
            },
            'indexName': {
                'value': index_name,
                'validator': 'INDEX_NAME'
            },
            'deliveryStreamName': {
                'value': name,
                'validator': 'DELIVERY_STREAM_NAME'
            }
        })

        def describe():
            details = self.get_delivery_stream(name)
            return details.arn if details else None

        return ensure_resource(
            "Delivery stream",
            name,
            describe_fn=describe,
            create_fn=lambda: self.create_delivery_stream(name, bucket_name, index_name, role_arn, log_group_name),
            already_exists_codes=["ResourceInUseException"],
        )

    def wait_for_activation(self, name: str,
                            interval_seconds: float = ACTIVATION_POLL_INTERVAL_SECONDS,
                            max_attempts: int = ACTIVATION_MAX_ATTEMPTS,
                            sleep_fn=time.sleep,
                            deadline: Optional[float] = None,
                            clock_fn=time.monotonic) -> DeliveryStreamDetails:
        return wait_until_ready(
            name,
            fetch_fn=lambda: self.get_delivery_stream(name),
            is_ready=lambda d: d.status == STATUS_ACTIVE,
            is_pending=lambda d: d.status == STATUS_CREATING,
            status_of=lambda d: d.status,
            interval_seconds=interval_seconds,
            max_attempts=max_attempts,
            sleep_fn=sleep_fn,
            deadline=deadline,
            clock_fn=clock_fn,
        )
