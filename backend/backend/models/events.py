"""
EventBridge event models consumed by the Overwatch handlers.

Raw events are decoded at the handler boundary into one of these typed models,
discriminated by ``source`` and ``detail-type``.

Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field
from aws_lambda_powertools.utilities.parser import parse
from aws_lambda_powertools.utilities.parser.models import EventBridgeModel
from models.resources import bucket_arn

OBJECT_CREATED_SOURCE = "aws.s3"
OBJECT_CREATED_DETAIL_TYPE = "Object Created"
TAG_CHANGE_SOURCE = "aws.tag"
TAG_CHANGE_DETAIL_TYPE = "Tag Change on Resource"
LOG_GROUP_SOURCE = "aws.logs"
LOG_GROUP_EVENT_NAMES = ["CreateLogGroup", "DeleteLogGroup"]


######################## Object Created ##########################

class BucketDetail(BaseModel):
    name: str


class ObjectDetail(BaseModel):
    key: str
    size: Optional[int] = None


class ObjectCreatedDetail(BaseModel):
    bucket: BucketDetail
    object: ObjectDetail


class ObjectCreatedEvent(EventBridgeModel):
    detail: ObjectCreatedDetail


######################## Tag Change ##########################

class TagChangeDetail(BaseModel):
    changed_tag_keys: List[str] = Field(default_factory=list, alias="changed-tag-keys")
    service: Optional[str] = None
    resource_type: Optional[str] = Field(None, alias="resource-type")
    tags: Dict[str, Any] = Field(default_factory=dict)


class TagChangeEvent(EventBridgeModel):
    detail: TagChangeDetail


######################## Log Group Lifecycle ##########################

class LogGroupRequestParameters(BaseModel):
    logGroupName: str


class LogGroupEventDetail(BaseModel):
    eventName: str
    requestParameters: LogGroupRequestParameters


class LogGroupEvent(EventBridgeModel):
    detail: LogGroupEventDetail


OverwatchEvent = Union[ObjectCreatedEvent, TagChangeEvent, LogGroupEvent]


def parse_event(event: Dict[str, Any]) -> Optional[OverwatchEvent]:
    """
    Decode a raw EventBridge event into its typed model.

    Returns None for events of an unknown source/detail-type. Raises the parser's
    ValidationError when a known event type is malformed.
    """
    source = event.get("source")
    detail_type = event.get("detail-type")

    if source == OBJECT_CREATED_SOURCE and detail_type == OBJECT_CREATED_DETAIL_TYPE:
        return parse(event=event, model=ObjectCreatedEvent)
    if source == TAG_CHANGE_SOURCE and detail_type == TAG_CHANGE_DETAIL_TYPE:
        return parse(event=event, model=TagChangeEvent)
    if source == LOG_GROUP_SOURCE and \
            (event.get("detail") or {}).get("eventName") in LOG_GROUP_EVENT_NAMES:
        return parse(event=event, model=LogGroupEvent)
    return None


def to_s3_notification(event: ObjectCreatedEvent) -> Dict[str, Any]:
    """Reshape an EventBridge object-created event into the S3 notification envelope"""
    bucket_name = event.detail.bucket.name
    derived_arn = bucket_arn(bucket_name)
    notification_bucket_arn = next((r for r in event.resources if r == derived_arn), derived_arn)

    return {
        "Records": [
            {
                "eventVersion": "2.1",
                "eventSource": "aws:s3",
                "awsRegion": event.region,
                "eventTime": event.time.isoformat().replace("+00:00", "Z"),
                "eventName": "ObjectCreated:Put",
                "s3": {
                    "bucket": {
                        "name": bucket_name,
                        "arn": notification_bucket_arn,
                    },
                    "object": {
                        "key": event.detail.object.key,
                        "size": event.detail.object.size,
                    },
                },
            }
        ]
    }
