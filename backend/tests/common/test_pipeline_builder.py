"""
Unit tests for pipeline_builder module.

Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import json
import pytest

from common.constants import INDEX_TEMPLATE
from common.pipeline_builder import (
    create_aws_options,
    create_opensearch_sink,
    create_processors,
    create_s3_dlq,
    create_s3_sqs_source,
    generate_log_pipeline_config,
)

ENDPOINT = "https://search-overwatch.us-east-1.es.amazonaws.com"
ROLE_ARN = "arn:aws:iam::123456789012:role/osis-pipeline-role"
QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/ingest-web-queue"


def _generate(**overrides):
    args = dict(
        endpoint=ENDPOINT,
        index_name="web",
        region="us-east-1",
        sts_role_arn=ROLE_ARN,
        queue_url=QUEUE_URL,
        bucket_name="logs-acme",
        pipeline_name="ingestion-pipeline-web",
        index_settings_json=json.dumps(INDEX_TEMPLATE),
    )
    args.update(overrides)
    return generate_log_pipeline_config(**args)


class TestCreateAwsOptions:
    """Test the shared aws block."""

    def test_region_and_role(self):
        assert create_aws_options("us-east-1", ROLE_ARN) == {
            "region": "us-east-1",
            "sts_role_arn": ROLE_ARN,
        }

    def test_extra_keys_come_first(self):
        options = create_aws_options("us-east-1", ROLE_ARN, serverless=False)
        assert list(options.keys()) == ["serverless", "region", "sts_role_arn"]


class TestCreateSource:
    """Test the S3-over-SQS source."""

    def test_defaults(self):
        source = create_s3_sqs_source(QUEUE_URL, "us-east-1", ROLE_ARN)["s3"]

        assert source["notification_type"] == "sqs"
        assert source["compression"] == "gzip"
        assert source["records_to_accumulate"] == 1000
        assert source["codec"] == {"newline": None}
        assert source["sqs"] == {
            "queue_url": QUEUE_URL,
            "maximum_messages": 10,
            "visibility_timeout": "60s",
            "visibility_duplication_protection": True,
        }


class TestCreateProcessorsAndSink:
    """Test processors, sink and dead letter target."""

    def test_processor_order(self):
        processors = create_processors()

        assert [list(p.keys())[0] for p in processors] == ["parse_json", "date", "delete_entries"]
        assert processors[1]["date"]["destination"] == "ingest_timestamp"
        assert processors[2]["delete_entries"]["with_keys"] == ["s3"]

    def test_dlq_prefix(self):
        dlq = create_s3_dlq("logs-acme", "ingestion-pipeline-web", "us-east-1", ROLE_ARN)

        assert dlq["s3"]["bucket"] == "logs-acme"
        assert dlq["s3"]["key_path_prefix"] == "dlq/ingestion-pipeline-web/%{yyyy}/%{MM}/%{dd}"

    def test_sink_index(self):
        sink = create_opensearch_sink(ENDPOINT, "web", "us-east-1", ROLE_ARN, "{}", dlq={})["opensearch"]

        assert sink["hosts"] == [ENDPOINT]
        assert sink["index"] == "logs-web-%{yyyy.MM.dd}"
        assert sink["index_type"] == "custom"
        assert sink["bulk_size"] == 15
        assert sink["aws"]["serverless"] is False


class TestGenerateLogPipelineConfig:
    """Test the complete configuration body."""

    def test_identical_inputs_are_byte_identical(self):
        assert _generate() == _generate()

    def test_different_index_changes_output(self):
        assert _generate() != _generate(index_name="api")

    def test_document_structure(self):
        document = json.loads(_generate())

        assert document["version"] == "2"
        pipeline = document["log-pipeline"]
        assert pipeline["source"]["s3"]["sqs"]["queue_url"] == QUEUE_URL
        assert pipeline["sink"][0]["opensearch"]["index"] == "logs-web-%{yyyy.MM.dd}"
        assert pipeline["sink"][0]["opensearch"]["dlq"]["s3"]["bucket"] == "logs-acme"

    def test_template_content_embedded_verbatim(self):
        document = json.loads(_generate())

        template = document["log-pipeline"]["sink"][0]["opensearch"]["template_content"]
        assert json.loads(template)["settings"]["number_of_shards"] == 2
        assert json.loads(template)["mappings"]["properties"]["time"]["format"] == "epoch_millis"
