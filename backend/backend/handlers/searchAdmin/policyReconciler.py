# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Dict, List
from common.constants import (
    ALL_ACCESS_ROLE,
    DEV_ROLE_DEFINITION,
    DEV_ROLE_NAME,
    ISM_INDEX_PATTERNS,
    ISM_POLICY_ID,
    ISM_TEMPLATE_PRIORITY,
    LOG_RETENTION_DAYS,
)
from customLogging.logger import safeLogger
from handlers.searchAdmin.searchAdminClient import SearchAdminClient
from models.common import ResourceNotFoundError
from models.resources import PolicyVersion, RoleMapping

logger = safeLogger(service="PolicyReconciler")


def build_retention_policy(retention_days: int = LOG_RETENTION_DAYS) -> Dict[str, Any]:
    """Index lifecycle: hot until the index is retention_days old, then delete"""
    return {
        "description": "Manage index lifecycle",
        "default_state": "hot",
        "states": [
            {
                "name": "hot",
                "actions": [],
                "transitions": [
                    {
                        "state_name": "delete",
                        "conditions": {
                            "min_index_age": f"{retention_days}d"
                        }
                    }
                ]
            },
            {
                "name": "delete",
                "actions": [
                    {
                        "delete": {}
                    }
                ],
                "transitions": []
            }
        ],
        "ism_template": [
            {
                "index_patterns": list(ISM_INDEX_PATTERNS),
                "priority": ISM_TEMPLATE_PRIORITY
            }
        ]
    }


class PolicyReconciler:

    def __init__(self, search: SearchAdminClient):
        self.search = search

    def update_ism_policy(self, retention_days: int = LOG_RETENTION_DAYS,
                          policy_id: str = ISM_POLICY_ID) -> PolicyVersion:
        """
        Overwrite the lifecycle policy conditioned on the version it was read at.

        The policy must already exist. A concurrent writer makes the conditional write
        fail with VersionConflictError; the next invocation starts from a fresh read.
        """
        current = self.search.get_policy(policy_id)
        if current is None:
            logger.error(f"ISM policy {policy_id} not found")
            raise ResourceNotFoundError("ISM policy", policy_id)

        updated = self.search.put_policy(
            policy_id,
            build_retention_policy(retention_days),
            current.seq_no,
            current.primary_term,
        )
        logger.info(f"ISM policy {policy_id} updated (seq_no {current.seq_no} -> {updated.seq_no})")
        return updated

    def ensure_backend_role(self, role_name: str, backend_role: str) -> bool:
        """
        Append backend_role to an existing role mapping.

        Returns False without writing when the role is already mapped.
        """
        mapping = self.search.get_role_mapping(role_name)
        if mapping is None:
            logger.error(f"Role mapping {role_name} not found")
            raise ResourceNotFoundError("Role mapping", role_name)

        updated = mapping.with_backend_role(backend_role)
        if updated is None:
            logger.info(f"{backend_role} already mapped to {role_name}")
            return False

        self.search.put_role_mapping(role_name, updated)
        logger.info(f"Mapped {backend_role} to {role_name}")
        return True

    def ensure_access_role(self, access_role_arn: str) -> bool:
        return self.ensure_backend_role(ALL_ACCESS_ROLE, access_role_arn)

    def ensure_role(self, role_name: str, definition: Dict[str, Any]) -> bool:
        """Create the role if it is missing. An existing role is left as is."""
        if self.search.get_role(role_name) is not None:
            logger.info(f"Role {role_name} already exists")
            return False
        self.search.put_role(role_name, definition)
        logger.info(f"Role {role_name} created")
        return True

    def ensure_dev_role(self, backend_ids: List[str]) -> bool:
        """
        Create the read only developer role and map the given backend groups to it.

        The mapping belongs to this role, so a missing mapping is created rather than
        treated as an error. Returns True when the mapping was written.
        """
        if not backend_ids:
            logger.info("No developer backend roles configured, skipping")
            return False

        self.ensure_role(DEV_ROLE_NAME, DEV_ROLE_DEFINITION)

        mapping = self.search.get_role_mapping(DEV_ROLE_NAME) or RoleMapping()
        updated = mapping.with_backend_roles(backend_ids)
        if updated is None:
            logger.info(f"Developer backend roles already mapped to {DEV_ROLE_NAME}")
            return False

        self.search.put_role_mapping(DEV_ROLE_NAME, updated)
        logger.info(f"Mapped {len(updated.backend_roles)} backend role(s) to {DEV_ROLE_NAME}")
        return True
