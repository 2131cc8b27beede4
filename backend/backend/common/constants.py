#  Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0

# Tags applied to every resource this system creates
AUTOMATION_TAGS = {
    "automation:url": "https://github.com/truemark/overwatch",
    "automation:component-id": "overwatch",
}

#Ingest queue settings
QUEUE_ATTRIBUTES = {
    "DelaySeconds": "0",
    "MessageRetentionPeriod": "345600",
}

#Ingestion pipeline capacity (OCUs)
PIPELINE_MIN_UNITS = 1
PIPELINE_MAX_UNITS = 5

# Index settings embedded into each pipeline's sink template
INDEX_TEMPLATE = {
    "settings": {
        "number_of_shards": 2,
        "number_of_replicas": 0,
        "refresh_interval": "30s",
        "index.queries.cache.enabled": True,
        "index.requests.cache.enable": True,
    },
    "mappings": {
        "properties": {
            "time": {
                "type": "date",
                "format": "epoch_millis",
            },
        },
    },
}

INDEX_PATTERN_TIME_FIELD = "ingest_timestamp"

# Index lifecycle (ISM)
ISM_POLICY_ID = "delete_logs_after_90_days"
ISM_INDEX_PATTERNS = ["logs-*"]
ISM_TEMPLATE_PRIORITY = 100
LOG_RETENTION_DAYS = 90

# Security plugin roles
ALL_ACCESS_ROLE = "all_access"
DEV_ROLE_NAME = "overwatch_dev"
DEV_ROLE_DEFINITION = {
    "description": "Read only access to Overwatch log indices",
    "cluster_permissions": [
        "cluster_composite_ops_ro",
    ],
    "index_permissions": [
        {
            "index_patterns": ["logs-*"],
            "allowed_actions": ["read", "indices:admin/mappings/get"],
        },
    ],
    "tenant_permissions": [
        {
            "tenant_patterns": ["global_tenant"],
            "allowed_actions": ["kibana_all_read"],
        },
    ],
}

# AutoLog (tag driven CloudWatch Logs shipping)
AUTOLOG_TAG_KEY = "autolog:dest"
AUTOLOG_FILTER_NAME = "AutoLog"
AUTOLOG_FILTER_PATTERN = ""
AUTOLOG_DISTRIBUTION = "ByLogStream"

DELIVERY_STREAM_BUFFER_MB = 128
DELIVERY_STREAM_BUFFER_SECONDS = 60

# Activation polling for asynchronously created resources
ACTIVATION_POLL_INTERVAL_SECONDS = 5
ACTIVATION_MAX_ATTEMPTS = 60

# Invocation time kept back from polling for logging and returning results
INVOCATION_SAFETY_MARGIN_SECONDS = 30

# Client side retry configuration shared by every boto3 client
BOTO_RETRY_MAX_ATTEMPTS = 5
BOTO_RETRY_MODE = "adaptive"
