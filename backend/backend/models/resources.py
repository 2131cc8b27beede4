"""
Resource identities and backend resource views used by the provisioners.

Every managed resource name is derived from the event that triggered the run, so the
same index, bucket or log group always maps to the same queue, pipeline or delivery
stream. Lookups by these names are what make the provisioners idempotent.

Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from common.validators import validate
from models.common import ValidationFailure


######################## Resource Identities ##########################

def index_name_from_key(object_key: str) -> str:
    """Index name is the second segment of the object key (app/<index>/...)"""
    parts = object_key.split('/')
    if len(parts) < 2 or not parts[1]:
        raise ValidationFailure(f"Cannot derive an index name from object key {object_key}")
    return parts[1]


def queue_name(index_name: str) -> str:
    return f"ingest-{index_name}-queue"


def pipeline_name(index_name: str) -> str:
    return f"ingestion-pipeline-{index_name}"


def pipeline_log_group_name(pipeline: str) -> str:
    return f"/aws/vendedlogs/{pipeline}"


def index_pattern_id(index_name: str) -> str:
    return f"logs-{index_name}"


def delivery_stream_name(bucket_name: str, index_name: str) -> str:
    return f"AutoLog-{bucket_name}-{index_name}"


def bucket_arn(bucket_name: str) -> str:
    return f"arn:aws:s3:::{bucket_name}"


def log_group_name_from_arn(arn: str) -> str:
    # arn:aws:logs:<region>:<account>:log-group:<name>[:*]
    resource = arn.split(':', 5)[5] if arn.count(':') >= 5 else ''
    if not resource.startswith('log-group:'):
        raise ValidationFailure(f"{arn} is not a log group ARN")
    name = resource[len('log-group:'):]
    if name.endswith(':*'):
        name = name[:-2]
    return name


def require_valid(values: Dict[str, Dict[str, Any]]) -> None:
    (valid, message) = validate(values)
    if not valid:
        raise ValidationFailure(message)


######################## Backend Resource Views ##########################

class DeliveryStreamDetails(BaseModel):
    arn: str
    status: str


class SubscriptionFilterDetails(BaseModel):
    name: str
    destination: str


class LogGroupTags(BaseModel):
    dest: str

    def destination(self):
        """Split the tag value into (bucket, index)"""
        parts = self.dest.split('/')
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValidationFailure(f"Invalid destination {self.dest}, expected <bucket>/<index>")
        return parts[0], parts[1]


class PolicyVersion(BaseModel):
    """An ISM policy together with the optimistic concurrency token it was read at"""
    policy_id: str
    seq_no: int
    primary_term: int
    policy: Dict[str, Any] = Field(default_factory=dict)


class RoleMapping(BaseModel):
    backend_roles: List[str] = Field(default_factory=list)
    hosts: List[str] = Field(default_factory=list)
    users: List[str] = Field(default_factory=list)

    def with_backend_role(self, role: str) -> Optional["RoleMapping"]:
        """Set-union the role into backend_roles. Returns None if it is already mapped."""
        if role in self.backend_roles:
            return None
        return RoleMapping(
            backend_roles=self.backend_roles + [role],
            hosts=list(self.hosts),
            users=list(self.users),
        )

    def with_backend_roles(self, roles: List[str]) -> Optional["RoleMapping"]:
        missing = [r for r in dict.fromkeys(roles) if r not in self.backend_roles]
        if not missing:
            return None
        return RoleMapping(
            backend_roles=self.backend_roles + missing,
            hosts=list(self.hosts),
            users=list(self.users),
        )

    def body(self) -> Dict[str, List[str]]:
        return {
            "backend_roles": self.backend_roles,
            "hosts": self.hosts,
            "users": self.users,
        }
