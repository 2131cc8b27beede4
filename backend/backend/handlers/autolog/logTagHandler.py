# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import time
from typing import Any, Callable, Dict, List, Optional
from aws_lambda_powertools.utilities.typing import LambdaContext
from aws_lambda_powertools.utilities.parser import ValidationError
from common import aws_client
from common.constants import ACTIVATION_MAX_ATTEMPTS, ACTIVATION_POLL_INTERVAL_SECONDS
from common.identity import CallerIdentity
from common.poller import invocation_deadline
from customLogging.logger import safeLogger
from handlers.provisioning.deliveryStreamProvisioner import DeliveryStreamProvisioner
from handlers.provisioning.logGroupProvisioner import LogGroupProvisioner
from models.config import AutoLogConfig
from models.events import LogGroupEvent, TagChangeEvent, parse_event
from models.resources import delivery_stream_name, log_group_name_from_arn

logger = safeLogger(service="AutoLogTagHandler")


class SubscriptionReconciler:
    """
    Keeps a log group's AutoLog subscription filter in line with its autolog:dest tag.

    A tagged log group gets a delivery stream for its bucket/index destination and a
    filter pointing at it. An untagged log group loses the filter.
    """

    def __init__(self, config: AutoLogConfig, log_groups: LogGroupProvisioner,
                 delivery_streams: DeliveryStreamProvisioner, identity: CallerIdentity,
                 sleep_fn: Callable[[float], None] = time.sleep,
                 poll_interval_seconds: float = ACTIVATION_POLL_INTERVAL_SECONDS,
                 poll_max_attempts: int = ACTIVATION_MAX_ATTEMPTS,
                 clock_fn: Callable[[], float] = time.monotonic):
        self.config = config
        self.log_groups = log_groups
        self.delivery_streams = delivery_streams
        self.identity = identity
        self.sleep_fn = sleep_fn
        self.poll_interval_seconds = poll_interval_seconds
        self.poll_max_attempts = poll_max_attempts
        self.clock_fn = clock_fn

    @staticmethod
    def from_config(config: AutoLogConfig):
        identity = CallerIdentity(aws_client('sts', config.region))
        log_groups = LogGroupProvisioner(aws_client('logs', config.region))
        delivery_streams = DeliveryStreamProvisioner(
            aws_client('firehose', config.region), log_groups, identity, config.region)
        return SubscriptionReconciler(config, log_groups, delivery_streams, identity)

    def remove_subscription(self, log_group_name: str) -> str:
        if self.log_groups.delete_subscription_filter(log_group_name):
            return "removed"
        return "unchanged"

    def apply_subscription(self, log_group_name: str, bucket_name: str, index_name: str,
                           deadline: Optional[float] = None) -> str:
        stream_name = delivery_stream_name(bucket_name, index_name)
        self.delivery_streams.ensure_delivery_stream(
            bucket_name,
            index_name,
            self.config.delivery_stream_role_arn,
            self.config.delivery_stream_log_group_name,
        )
        details = self.delivery_streams.wait_for_activation(
            stream_name,
            interval_seconds=self.poll_interval_seconds,
            max_attempts=self.poll_max_attempts,
            sleep_fn=self.sleep_fn,
            deadline=deadline,
            clock_fn=self.clock_fn,
        )
        self.log_groups.put_subscription_filter(
            log_group_name,
            details.arn,
            self.config.subscription_filter_role_arn,
        )
        return "subscribed"

    def reconcile_log_group(self, log_group_arn: str, deadline: Optional[float] = None) -> str:
        log_group_name = log_group_name_from_arn(log_group_arn)
        tags = self.log_groups.get_log_group_tags(log_group_arn)
        if tags is None:
            logger.info(f"{log_group_name} has no destination tag")
            return self.remove_subscription(log_group_name)

        bucket_name, index_name = tags.destination()
        logger.info(f"{log_group_name} ships to {bucket_name}/{index_name}")
        return self.apply_subscription(log_group_name, bucket_name, index_name, deadline)

    def reconcile_all(self, log_group_arns: List[str], deadline: Optional[float] = None) -> Dict[str, str]:
        """
        Reconcile each log group on its own; a failure is recorded and the batch continues.

        The time left before the deadline is shared evenly between the log groups not
        yet processed, so one stuck delivery stream cannot starve the rest.
        """
        results = {}
        for position, arn in enumerate(log_group_arns):
            resource_deadline = None
            if deadline is not None:
                now = self.clock_fn()
                resource_deadline = now + max(deadline - now, 0) / (len(log_group_arns) - position)
            try:
                results[arn] = self.reconcile_log_group(arn, resource_deadline)
            except Exception as e:
                logger.exception(f"Error occurred processing {arn}")
                results[arn] = f"failed: {e}"
        return results

    def handle_log_group_event(self, event: LogGroupEvent, deadline: Optional[float] = None) -> Optional[Dict[str, str]]:
        log_group_name = event.detail.requestParameters.logGroupName
        if event.detail.eventName == "DeleteLogGroup":
            # Subscription filters are removed together with their log group
            logger.info(f"Log group {log_group_name} deleted")
            return None
        arn = self.identity.log_group_arn(self.config.region, log_group_name)
        return self.reconcile_all([arn], deadline)


def _strip_wildcard(arn: str) -> str:
    return arn[:-2] if arn.endswith(":*") else arn


def lambda_handler(event: Dict[Any, Any], context: LambdaContext, reconciler: SubscriptionReconciler = None):
    config = AutoLogConfig.from_env()

    try:
        parsed = parse_event(event)
    except ValidationError as e:
        logger.error(f"Dropping malformed event: {e}")
        return {"dropped": True}

    if isinstance(parsed, TagChangeEvent):
        logger.info(f"Received tag event for {len(parsed.resources)} resource(s)")
        reconciler = reconciler or SubscriptionReconciler.from_config(config)
        deadline = invocation_deadline(context, reconciler.clock_fn)
        return reconciler.reconcile_all([_strip_wildcard(arn) for arn in parsed.resources], deadline)

    if isinstance(parsed, LogGroupEvent):
        logger.info(f"Received {parsed.detail.eventName} for {parsed.detail.requestParameters.logGroupName}")
        reconciler = reconciler or SubscriptionReconciler.from_config(config)
        deadline = invocation_deadline(context, reconciler.clock_fn)
        return reconciler.handle_log_group_event(parsed, deadline) or {}

    logger.error(f"Unknown event {event.get('source')}/{event.get('detail-type')}")
    return {"dropped": True}
