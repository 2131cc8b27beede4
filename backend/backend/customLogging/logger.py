# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from aws_lambda_powertools import Logger
from aws_lambda_powertools.logging.formatter import LambdaPowertoolsFormatter

location_format = "[%(funcName)s] %(module)s"
date_format = "%m/%d/%Y %I:%M:%S %p"

# Keys are compared lower-cased
keys_to_redact = [
    "authorization",
    "accesskeyid",
    "secretaccesskey",
    "sessiontoken",
    "credentials",
]


def mask_sensitive_data(event):
    # remove credentials and auth headers before anything reaches CloudWatch
    result = {}
    for k, v in event.items():
        if isinstance(k, str) and k.lower() in keys_to_redact:
            result[k] = "<redacted>"
        elif isinstance(v, dict):
            result[k] = mask_sensitive_data(v)
        else:
            result[k] = v
    return result


class CustomFormatter(LambdaPowertoolsFormatter):
    def serialize(self, log: dict) -> str:
        """Serialize final structured log dict to JSON str"""
        log = mask_sensitive_data(event=log)
        return self.json_serializer(log)


def safeLogger(**kwargs):
    return Logger(
        logger_formatter=CustomFormatter(),
        location=location_format,
        datefmt=date_format,
        **kwargs)
