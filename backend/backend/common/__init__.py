# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from common.constants import BOTO_RETRY_MAX_ATTEMPTS, BOTO_RETRY_MODE

retry_config = Config(
    retries={
        'max_attempts': BOTO_RETRY_MAX_ATTEMPTS,
        'mode': BOTO_RETRY_MODE
    }
)


def aws_client(service_name, region=None):
    return boto3.client(service_name, region_name=region, config=retry_config)


def client_error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')
