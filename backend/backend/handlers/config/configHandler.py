#  Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0

from typing import Any, Dict
from aws_lambda_powertools.utilities.typing import LambdaContext
from customLogging.logger import safeLogger
from handlers.searchAdmin.policyReconciler import PolicyReconciler
from handlers.searchAdmin.searchAdminClient import SearchAdminClient
from models.config import SearchConfig

logger = safeLogger(service="ConfigHandler")


def reconcile_search_domain(config: SearchConfig, search: SearchAdminClient) -> Dict[str, Any]:
    reconciler = PolicyReconciler(search)

    policy = reconciler.update_ism_policy(config.retention_days)
    access_role_mapped = reconciler.ensure_access_role(config.open_search_access_role_arn)
    dev_role_mapped = reconciler.ensure_dev_role(config.dev_role_backend_ids)

    return {
        "policyId": policy.policy_id,
        "policySeqNo": policy.seq_no,
        "accessRoleMapped": access_role_mapped,
        "devRoleMapped": dev_role_mapped,
    }


def lambda_handler(event: Dict[Any, Any], context: LambdaContext, search: SearchAdminClient = None):
    config = SearchConfig.from_env()
    try:
        search = search or SearchAdminClient.from_config(config)
        result = reconcile_search_domain(config, search)
        logger.info(result)
        return result
    except Exception:
        logger.exception(f"Failed to reconcile search domain {config.open_search_endpoint}")
        raise
