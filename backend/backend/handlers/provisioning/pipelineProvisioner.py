# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Callable, Optional
from botocore.exceptions import ClientError
from common import client_error_code
from common.constants import AUTOMATION_TAGS
from common.provisioner import ensure_resource
from customLogging.logger import safeLogger
from models.common import EnsureResult, ValidationFailure
from models.resources import require_valid

logger = safeLogger(service="PipelineProvisioner")


class PipelineProvisioner:
    """OpenSearch Ingestion pipelines"""

    def __init__(self, osis_client):
        self.osis_client = osis_client

    def get_pipeline(self, name: str) -> Optional[str]:
        """Returns the pipeline ARN, or None if the pipeline does not exist"""
        try:
            response = self.osis_client.get_pipeline(PipelineName=name)
        except ClientError as e:
            if client_error_code(e) == "ResourceNotFoundException":
                return None
            logger.exception(f"Error while checking pipeline {name} existence")
            raise
        return response["Pipeline"].get("PipelineArn", name)

    def create_pipeline(self, name: str, configuration_body: str, min_units: int, max_units: int,
                        log_group_name: str) -> str:
        try:
            response = self.osis_client.create_pipeline(
                PipelineName=name,
                MinUnits=min_units,
                MaxUnits=max_units,
                PipelineConfigurationBody=configuration_body,
                LogPublishingOptions={
                    "IsLoggingEnabled": False,
                    "CloudWatchLogDestination": {
                        "LogGroup": log_group_name
                    }
                },
                BufferOptions={
                    "PersistentBufferEnabled": False
                },
                Tags=[{"Key": k, "Value": v} for k, v in AUTOMATION_TAGS.items()],
            )
        except ClientError as e:
            if client_error_code(e) == "ValidationException":
                logger.error(f"Pipeline {name} configuration rejected: {e}")
                raise ValidationFailure(f"Pipeline {name} configuration rejected: {e}") from e
            raise
        return response["Pipeline"].get("PipelineArn", name)

    def ensure_pipeline(self, name: str, create_fn: Callable[[], str]) -> EnsureResult:
        """
        Get-or-create a pipeline.

        create_fn runs only when the pipeline is missing, so the caller can defer the
        preparation a new pipeline needs (log group, configuration body).
        """
        require_valid({
            'pipelineName': {
                'value': name,
                'validator': 'PIPELINE_NAME'
            }
        })
        return ensure_resource(
            "Pipeline",
            name,
            describe_fn=lambda: self.get_pipeline(name),
            create_fn=create_fn,
            already_exists_codes=["ResourceAlreadyExistsException"],
        )
