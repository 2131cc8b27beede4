# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
from typing import Any, Dict, Optional
from botocore.exceptions import ClientError
from common import client_error_code
from common.constants import AUTOMATION_TAGS, QUEUE_ATTRIBUTES
from common.provisioner import ensure_resource
from customLogging.logger import safeLogger
from models.common import EnsureResult
from models.resources import queue_name, require_valid

logger = safeLogger(service="QueueProvisioner")

# Query and JSON protocol spellings of the same errors
QUEUE_NOT_FOUND_CODES = ["AWS.SimpleQueueService.NonExistentQueue", "QueueDoesNotExist"]
QUEUE_EXISTS_CODES = ["QueueAlreadyExists", "QueueNameExists"]


class QueueProvisioner:

    def __init__(self, sqs_client):
        self.sqs_client = sqs_client

    def get_queue_url(self, name: str) -> Optional[str]:
        try:
            return self.sqs_client.get_queue_url(QueueName=name)["QueueUrl"]
        except ClientError as e:
            if client_error_code(e) in QUEUE_NOT_FOUND_CODES:
                return None
            raise

    def create_queue(self, name: str) -> str:
        response = self.sqs_client.create_queue(
            QueueName=name,
            Attributes=dict(QUEUE_ATTRIBUTES),
            tags=dict(AUTOMATION_TAGS),
        )
        return response["QueueUrl"]

    def ensure_queue(self, index_name: str) -> EnsureResult:
        """Get-or-create the ingest queue backing an index"""
        name = queue_name(index_name)
        require_valid({
            'queueName': {
                'value': name,
                'validator': 'QUEUE_NAME'
            }
        })
        return ensure_resource(
            "Queue",
            name,
            describe_fn=lambda: self.get_queue_url(name),
            create_fn=lambda: self.create_queue(name),
            already_exists_codes=QUEUE_EXISTS_CODES,
        )

    def send_message(self, queue_url: str, body: Dict[str, Any]) -> str:
        try:
            response = self.sqs_client.send_message(
                QueueUrl=queue_url,
                MessageBody=json.dumps(body),
            )
        except ClientError:
            logger.exception(f"Failed to send message to {queue_url}")
            raise
        logger.info(f"Message {response['MessageId']} sent to {queue_url}")
        return response["MessageId"]
