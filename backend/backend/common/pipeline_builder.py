"""
OpenSearch Ingestion (Data Prepper) pipeline configuration builder

This module builds the declarative pipeline configuration that every per-index
ingestion pipeline is created with. The configuration reads S3 object-created
notifications from an SQS queue, parses each gzip'd newline-delimited JSON record,
and writes it into a daily rolling index with an S3 dead-letter path.

The builders are pure functions. The serialized document is JSON, which the
ingestion service accepts as YAML.

Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import json
from typing import Dict, List, Any

PIPELINE_CONFIG_VERSION = "2"
PIPELINE_KEY = "log-pipeline"


def create_aws_options(region: str, sts_role_arn: str, **extra: Any) -> Dict[str, Any]:
    """
    Create the aws block shared by sources, sinks and DLQs.

    Args:
        region: AWS region of the target resource
        sts_role_arn: Role the pipeline assumes to reach the resource
        extra: Additional keys placed ahead of region (e.g. serverless)

    Returns:
        Dictionary representing the aws block
    """
    options = dict(extra)
    options["region"] = region
    options["sts_role_arn"] = sts_role_arn
    return options


def create_s3_sqs_source(
    queue_url: str,
    region: str,
    sts_role_arn: str,
    records_to_accumulate: int = 1000,
    maximum_messages: int = 10,
    visibility_timeout: str = "60s"
) -> Dict[str, Any]:
    """
    Create an S3 source driven by SQS notifications.

    Objects are gzip decoded and split on newlines. Duplicate delivery protection
    extends message visibility while an object is still being read.
    """
    return {
        "s3": {
            "acknowledgments": False,
            "notification_type": "sqs",
            "compression": "gzip",
            "records_to_accumulate": records_to_accumulate,
            "codec": {
                "newline": None
            },
            "sqs": {
                "queue_url": queue_url,
                "maximum_messages": maximum_messages,
                "visibility_timeout": visibility_timeout,
                "visibility_duplication_protection": True
            },
            "aws": create_aws_options(region, sts_role_arn)
        }
    }


def create_processors(timestamp_field: str = "ingest_timestamp",
                      strip_keys: List[str] = None) -> List[Dict[str, Any]]:
    """Parse JSON, stamp the receive time, and drop the S3 metadata entry"""
    return [
        {"parse_json": None},
        {
            "date": {
                "from_time_received": True,
                "destination": timestamp_field
            }
        },
        {
            "delete_entries": {
                "with_keys": strip_keys if strip_keys is not None else ["s3"]
            }
        }
    ]


def create_s3_dlq(bucket_name: str, pipeline_name: str, region: str, sts_role_arn: str) -> Dict[str, Any]:
    """Dead letter records under dlq/<pipeline>/<yyyy>/<MM>/<dd>"""
    return {
        "s3": {
            "bucket": bucket_name,
            "key_path_prefix": f"dlq/{pipeline_name}/%{{yyyy}}/%{{MM}}/%{{dd}}",
            **create_aws_options(region, sts_role_arn)
        }
    }


def create_opensearch_sink(
    endpoint: str,
    index_name: str,
    region: str,
    sts_role_arn: str,
    template_content: str,
    dlq: Dict[str, Any],
    bulk_size: int = 15
) -> Dict[str, Any]:
    """
    Create an OpenSearch sink writing to logs-<index>-<yyyy.MM.dd>.

    Args:
        endpoint: Domain endpoint including scheme
        index_name: Logical index name derived from the object key
        region: Domain region
        sts_role_arn: Role the pipeline assumes to write to the domain
        template_content: Index template JSON applied to new daily indices
        dlq: Dead letter configuration
        bulk_size: Bulk request size in MiB

    Returns:
        Dictionary representing the sink
    """
    return {
        "opensearch": {
            "hosts": [endpoint],
            "index": f"logs-{index_name}-%{{yyyy.MM.dd}}",
            "index_type": "custom",
            "bulk_size": bulk_size,
            "template_content": template_content,
            "aws": create_aws_options(region, sts_role_arn, serverless=False),
            "dlq": dlq
        }
    }


def create_pipeline_definition(
    source: Dict[str, Any],
    processors: List[Dict[str, Any]],
    sinks: List[Dict[str, Any]]
) -> Dict[str, Any]:
    return {
        "version": PIPELINE_CONFIG_VERSION,
        PIPELINE_KEY: {
            "source": source,
            "processor": processors,
            "sink": sinks
        }
    }


def generate_log_pipeline_config(
    endpoint: str,
    index_name: str,
    region: str,
    sts_role_arn: str,
    queue_url: str,
    bucket_name: str,
    pipeline_name: str,
    index_settings_json: str
) -> str:
    """
    Build the complete pipeline configuration body for one index.

    Identical inputs always produce byte-identical output.

    Returns:
        Serialized pipeline configuration body
    """
    definition = create_pipeline_definition(
        source=create_s3_sqs_source(queue_url, region, sts_role_arn),
        processors=create_processors(),
        sinks=[
            create_opensearch_sink(
                endpoint=endpoint,
                index_name=index_name,
                region=region,
                sts_role_arn=sts_role_arn,
                template_content=index_settings_json,
                dlq=create_s3_dlq(bucket_name, pipeline_name, region, sts_role_arn)
            )
        ]
    )
    return json.dumps(definition, indent=2)
