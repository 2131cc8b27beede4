# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import os
from typing import List
from pydantic import BaseModel, Field, validator
from aws_lambda_powertools.utilities.parser import parse, ValidationError
from common.constants import PIPELINE_MIN_UNITS, PIPELINE_MAX_UNITS, LOG_RETENTION_DAYS
from common.validators import validate
from models.common import ValidationFailure


def _from_env(model, mapping, env):
    values = {field: env[var] for var, field in mapping.items() if env.get(var)}
    try:
        return parse(event=values, model=model)
    except ValidationError as e:
        missing = [var for var, field in mapping.items() if field not in values]
        raise ValidationFailure(
            f"Invalid {model.__name__} from environment (unset: {', '.join(missing) or 'none'}): {e}") from e


def _check(field, value, validator_name, optional=False):
    (valid, message) = validate({
        field: {
            'value': value,
            'validator': validator_name,
            'optional': optional
        }
    })
    if not valid:
        raise ValueError(message)
    return value


class IngestionConfig(BaseModel):
    """Settings for the object-notification handler"""
    region: str
    pipeline_role_arn: str
    open_search_endpoint: str
    open_search_master_role_arn: str
    min_units: int = PIPELINE_MIN_UNITS
    max_units: int = PIPELINE_MAX_UNITS

    @validator("max_units")
    def max_units_not_below_min(cls, v, values):
        if "min_units" in values and v < values["min_units"]:
            raise ValueError("max_units must be greater than or equal to min_units")
        return v

    @validator("pipeline_role_arn")
    def pipeline_role(cls, v):
        return _check("pipeline_role_arn", v, 'ARN')

    @validator("open_search_master_role_arn")
    def master_role(cls, v):
        return _check("open_search_master_role_arn", v, 'ARN')

    @classmethod
    def from_env(cls, env=os.environ):
        return _from_env(cls, {
            "AWS_REGION": "region",
            "OSIS_ROLE_ARN": "pipeline_role_arn",
            "OPEN_SEARCH_ENDPOINT": "open_search_endpoint",
            "OPEN_SEARCH_MASTER_ROLE_ARN": "open_search_master_role_arn",
            "PIPELINE_MIN_UNITS": "min_units",
            "PIPELINE_MAX_UNITS": "max_units",
        }, env)


class SearchConfig(BaseModel):
    """Settings for the lifecycle policy and role mapping handler"""
    region: str
    open_search_endpoint: str
    open_search_master_role_arn: str
    open_search_access_role_arn: str
    dev_role_backend_ids: List[str] = Field(default_factory=list)
    retention_days: int = LOG_RETENTION_DAYS

    @validator("dev_role_backend_ids", pre=True)
    def split_backend_ids(cls, v):
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @validator("dev_role_backend_ids")
    def backend_ids(cls, v):
        return _check("dev_role_backend_ids", v, 'BACKEND_ROLE_ARRAY', optional=True)

    @validator("open_search_master_role_arn")
    def master_role(cls, v):
        return _check("open_search_master_role_arn", v, 'ARN')

    @validator("open_search_access_role_arn")
    def access_role(cls, v):
        return _check("open_search_access_role_arn", v, 'ARN')

    @validator("retention_days")
    def positive_retention(cls, v):
        if v < 1:
            raise ValueError("retention_days must be at least 1")
        return v

    @classmethod
    def from_env(cls, env=os.environ):
        return _from_env(cls, {
            "AWS_REGION": "region",
            "OPEN_SEARCH_ENDPOINT": "open_search_endpoint",
            "OPEN_SEARCH_MASTER_ROLE_ARN": "open_search_master_role_arn",
            "OPEN_SEARCH_ACCESS_ROLE_ARN": "open_search_access_role_arn",
            "DEV_ROLE_BACKEND_IDS": "dev_role_backend_ids",
            "LOG_RETENTION_DAYS": "retention_days",
        }, env)


class AutoLogConfig(BaseModel):
    """Settings for the tag driven subscription handler"""
    region: str
    delivery_stream_role_arn: str
    subscription_filter_role_arn: str
    delivery_stream_log_group_name: str

    @validator("delivery_stream_role_arn")
    def delivery_stream_role(cls, v):
        return _check("delivery_stream_role_arn", v, 'ARN')

    @validator("subscription_filter_role_arn")
    def subscription_filter_role(cls, v):
        return _check("subscription_filter_role_arn", v, 'ARN')

    @classmethod
    def from_env(cls, env=os.environ):
        return _from_env(cls, {
            "AWS_REGION": "region",
            "DELIVERY_STREAM_ROLE_ARN": "delivery_stream_role_arn",
            "SUBSCRIPTION_FILTER_ROLE_ARN": "subscription_filter_role_arn",
            "DELIVERY_STREAM_LOG_GROUP_NAME": "delivery_stream_log_group_name",
        }, env)
