# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Optional
from botocore.exceptions import ClientError
from common import client_error_code
from common.constants import (
    AUTOLOG_DISTRIBUTION,
    AUTOLOG_FILTER_NAME,
    AUTOLOG_FILTER_PATTERN,
    AUTOLOG_TAG_KEY,
    AUTOMATION_TAGS,
)
from customLogging.logger import safeLogger
from models.common import EnsureResult
from models.resources import LogGroupTags, SubscriptionFilterDetails, require_valid

logger = safeLogger(service="LogGroupProvisioner")

ALREADY_EXISTS_CODE = "ResourceAlreadyExistsException"
NOT_FOUND_CODE = "ResourceNotFoundException"


class LogGroupProvisioner:
    """CloudWatch Logs groups, streams, tags and subscription filters"""

    def __init__(self, logs_client):
        self.logs_client = logs_client

    def ensure_log_group(self, log_group_name: str) -> EnsureResult:
        # CreateLogGroup reports an existing group distinctly, so create doubles as describe
        require_valid({
            'logGroupName': {
                'value': log_group_name,
                'validator': 'LOG_GROUP_NAME'
            }
        })
        try:
            self.logs_client.create_log_group(logGroupName=log_group_name, tags=dict(AUTOMATION_TAGS))
            logger.info(f"Log group {log_group_name} created")
            return EnsureResult(already_existed=False, handle=log_group_name)
        except ClientError as e:
            if client_error_code(e) == ALREADY_EXISTS_CODE:
                logger.info(f"Log group {log_group_name} already exists")
                return EnsureResult(already_existed=True, handle=log_group_name)
            logger.exception(f"Failed to ensure log group {log_group_name} exists")
            raise

    def ensure_log_stream(self, log_group_name: str, log_stream_name: str) -> EnsureResult:
        try:
            self.logs_client.create_log_stream(logGroupName=log_group_name, logStreamName=log_stream_name)
            logger.info(f"Log stream {log_stream_name} created in {log_group_name}")
            return EnsureResult(already_existed=False, handle=log_stream_name)
        except ClientError as e:
            if client_error_code(e) == ALREADY_EXISTS_CODE:
                return EnsureResult(already_existed=True, handle=log_stream_name)
            logger.exception(f"Failed to ensure log stream {log_stream_name} exists")
            raise

    def get_log_group_tags(self, log_group_arn: str) -> Optional[LogGroupTags]:
        """Returns the AutoLog tags of a log group, or None when the driving tag is absent"""
        response = self.logs_client.list_tags_for_resource(resourceArn=log_group_arn)
        tags = response.get("tags") or {}
        if AUTOLOG_TAG_KEY not in tags:
            return None
        return LogGroupTags(dest=tags[AUTOLOG_TAG_KEY])

    def get_subscription_filter(self, log_group_name: str,
                                filter_name: str = AUTOLOG_FILTER_NAME) -> Optional[SubscriptionFilterDetails]:
        try:
            response = self.logs_client.describe_subscription_filters(
                logGroupName=log_group_name,
                filterNamePrefix=filter_name,
            )
        except ClientError as e:
            if client_error_code(e) == NOT_FOUND_CODE:
                return None
            raise

        for subscription_filter in response.get("subscriptionFilters", []):
            if subscription_filter.get("filterName") == filter_name:
                return SubscriptionFilterDetails(
                    name=subscription_filter["filterName"],
                    destination=subscription_filter["destinationArn"],
                )
        return None

    def put_subscription_filter(self, log_group_name: str, destination_arn: str, role_arn: str) -> str:
        """Create or update in place the single AutoLog filter of a log group"""
        self.logs_client.put_subscription_filter(
            logGroupName=log_group_name,
            filterName=AUTOLOG_FILTER_NAME,
            filterPattern=AUTOLOG_FILTER_PATTERN,
            destinationArn=destination_arn,
            roleArn=role_arn,
            distribution=AUTOLOG_DISTRIBUTION,
        )
        logger.info(f"Subscription filter {AUTOLOG_FILTER_NAME} on {log_group_name} points at {destination_arn}")
        return AUTOLOG_FILTER_NAME

    def delete_subscription_filter(self, log_group_name: str, filter_name: str = AUTOLOG_FILTER_NAME) -> bool:
        """Returns False when there was nothing to delete"""
        if self.get_subscription_filter(log_group_name, filter_name) is None:
            logger.info(f"No subscription filter {filter_name} on {log_group_name}")
            return False
        try:
            self.logs_client.delete_subscription_filter(logGroupName=log_group_name, filterName=filter_name)
        except ClientError as e:
            if client_error_code(e) == NOT_FOUND_CODE:
                return False
            raise
        logger.info(f"Deleted subscription filter {filter_name} from {log_group_name}")
        return True
