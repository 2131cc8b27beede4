# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
from typing import Any, Callable, Dict
from aws_lambda_powertools.utilities.typing import LambdaContext
from aws_lambda_powertools.utilities.parser import ValidationError
from pydantic import BaseModel
from common import aws_client
from common.constants import INDEX_PATTERN_TIME_FIELD, INDEX_TEMPLATE
from common.pipeline_builder import generate_log_pipeline_config
from customLogging.logger import safeLogger
from handlers.provisioning.logGroupProvisioner import LogGroupProvisioner
from handlers.provisioning.pipelineProvisioner import PipelineProvisioner
from handlers.provisioning.queueProvisioner import QueueProvisioner
from handlers.searchAdmin.searchAdminClient import SearchAdminClient
from models.common import ValidationFailure
from models.config import IngestionConfig
from models.events import ObjectCreatedEvent, parse_event, to_s3_notification
from models.resources import (
    index_name_from_key,
    index_pattern_id,
    pipeline_log_group_name,
    pipeline_name,
    queue_name,
    require_valid,
)

logger = safeLogger(service="IngestionMainHandler")


class IngestionTarget(BaseModel):
    """Names derived from one object-created event"""
    bucket_name: str
    index_name: str
    queue_name: str
    pipeline_name: str
    log_group_name: str


def derive_target(event: ObjectCreatedEvent) -> IngestionTarget:
    index_name = index_name_from_key(event.detail.object.key)
    pipeline = pipeline_name(index_name)
    target = IngestionTarget(
        bucket_name=event.detail.bucket.name,
        index_name=index_name,
        queue_name=queue_name(index_name),
        pipeline_name=pipeline,
        log_group_name=pipeline_log_group_name(pipeline),
    )
    require_valid({
        'bucketName': {
            'value': target.bucket_name,
            'validator': 'BUCKET_NAME'
        },
        'indexName': {
            'value': target.index_name,
            'validator': 'INDEX_NAME'
        },
        'queueName': {
            'value': target.queue_name,
            'validator': 'QUEUE_NAME'
        },
        'pipelineName': {
            'value': target.pipeline_name,
            'validator': 'PIPELINE_NAME'
        }
    })
    return target


def search_endpoint_url(endpoint: str) -> str:
    return endpoint if endpoint.startswith("https://") else f"https://{endpoint}"


class PipelineReconciler:
    """Queue, forwarded notification and ingestion pipeline for one index"""

    def __init__(self, config: IngestionConfig, queues: QueueProvisioner, log_groups: LogGroupProvisioner,
                 pipelines: PipelineProvisioner, search_factory: Callable[[], SearchAdminClient]):
        self.config = config
        self.queues = queues
        self.log_groups = log_groups
        self.pipelines = pipelines
        self.search_factory = search_factory

    @staticmethod
    def from_config(config: IngestionConfig):
        return PipelineReconciler(
            config=config,
            queues=QueueProvisioner(aws_client('sqs', config.region)),
            log_groups=LogGroupProvisioner(aws_client('logs', config.region)),
            pipelines=PipelineProvisioner(aws_client('osis', config.region)),
            search_factory=lambda: SearchAdminClient.from_config(config),
        )

    def _create_pipeline(self, target: IngestionTarget, queue_url: str) -> str:
        self.log_groups.ensure_log_group(target.log_group_name)
        configuration_body = generate_log_pipeline_config(
            endpoint=search_endpoint_url(self.config.open_search_endpoint),
            index_name=target.index_name,
            region=self.config.region,
            sts_role_arn=self.config.pipeline_role_arn,
            queue_url=queue_url,
            bucket_name=target.bucket_name,
            pipeline_name=target.pipeline_name,
            index_settings_json=json.dumps(INDEX_TEMPLATE),
        )
        return self.pipelines.create_pipeline(
            target.pipeline_name,
            configuration_body,
            self.config.min_units,
            self.config.max_units,
            target.log_group_name,
        )

    def _create_index_pattern(self, index_name: str) -> bool:
        pattern_id = index_pattern_id(index_name)
        try:
            return self.search_factory().create_index_pattern(
                pattern_id, f"{pattern_id}*", INDEX_PATTERN_TIME_FIELD)
        except Exception as e:
            # A missing index pattern only affects the dashboards
            logger.error(f"Failed to create index pattern {pattern_id}: {e}")
            return False

    def reconcile(self, event: ObjectCreatedEvent, target: IngestionTarget) -> Dict[str, Any]:
        queue = self.queues.ensure_queue(target.index_name)
        message_id = self.queues.send_message(queue.handle, to_s3_notification(event))

        pipeline = self.pipelines.ensure_pipeline(
            target.pipeline_name,
            create_fn=lambda: self._create_pipeline(target, queue.handle),
        )

        index_pattern_created = False
        if not pipeline.already_existed:
            index_pattern_created = self._create_index_pattern(target.index_name)

        return {
            "indexName": target.index_name,
            "queueUrl": queue.handle,
            "messageId": message_id,
            "pipelineName": target.pipeline_name,
            "pipelineCreated": not pipeline.already_existed,
            "indexPatternCreated": index_pattern_created,
        }


def lambda_handler(event: Dict[Any, Any], context: LambdaContext, reconciler: PipelineReconciler = None):
    config = IngestionConfig.from_env()

    # Events that no redelivery can fix are logged and dropped
    try:
        parsed = parse_event(event)
        if not isinstance(parsed, ObjectCreatedEvent):
            logger.error(f"Unsupported event {event.get('source')}/{event.get('detail-type')}")
            return {"dropped": True}
        target = derive_target(parsed)
    except (ValidationError, ValidationFailure) as e:
        logger.error(f"Dropping invalid object created event: {e}")
        return {"dropped": True}

    logger.info(f"Reconciling ingestion for {target.bucket_name} index {target.index_name}")
    reconciler = reconciler or PipelineReconciler.from_config(config)
    try:
        return reconciler.reconcile(parsed, target)
    except Exception:
        logger.exception(f"Failed to reconcile ingestion for index {target.index_name}")
        raise
