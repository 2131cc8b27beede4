# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Dict, Optional
from urllib.parse import urlparse
from botocore.credentials import Credentials
from opensearchpy import OpenSearch, RequestsHttpConnection, AWSV4SignerAuth, NotFoundError, ConflictError
from common import aws_client
from customLogging.logger import safeLogger
from models.common import VersionConflictError
from models.resources import PolicyVersion, RoleMapping

logger = safeLogger(service="SearchAdminClient")

ROLE_SESSION_NAME = "overwatch-config-handler"
SEARCH_SERVICE = "es"

INDEX_PATTERN_PATH = "/_dashboards/api/saved_objects/index-pattern"


def assume_role_credentials(sts_client, role_arn: str, session_name: str = ROLE_SESSION_NAME) -> Credentials:
    response = sts_client.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
    if not response.get("Credentials"):
        raise Exception(f"No credentials returned from AssumeRole for {role_arn}")
    creds = response["Credentials"]
    return Credentials(creds["AccessKeyId"], creds["SecretAccessKey"], creds["SessionToken"])


def create_search_client(endpoint: str, region: str, credentials: Credentials) -> OpenSearch:
    host = urlparse(endpoint).hostname or endpoint
    auth = AWSV4SignerAuth(credentials, region, SEARCH_SERVICE)
    return OpenSearch(
        hosts=[{'host': host, 'port': 443}],
        http_auth=auth,
        use_ssl=True,
        verify_certs=True,
        connection_class=RequestsHttpConnection,
        timeout=30,
        max_retries=3,
        retry_on_timeout=True
    )


class SearchAdminClient:
    """
    Admin operations against the search domain: ISM policies, security roles,
    role mappings and dashboards index patterns.
    """

    def __init__(self, client: OpenSearch):
        self.client = client

    @staticmethod
    def from_config(config, sts_client=None):
        """Assume the domain master role and build a signed client for it"""
        sts_client = sts_client or aws_client('sts', config.region)
        credentials = assume_role_credentials(sts_client, config.open_search_master_role_arn)
        logger.info(f"Assumed {config.open_search_master_role_arn} for {config.open_search_endpoint}")
        return SearchAdminClient(create_search_client(config.open_search_endpoint, config.region, credentials))

    ######################## ISM Policies ##########################

    def get_policy(self, policy_id: str) -> Optional[PolicyVersion]:
        try:
            response = self.client.plugins.index_management.get_policy(policy=policy_id)
        except NotFoundError:
            return None
        return PolicyVersion(
            policy_id=response.get("_id", policy_id),
            seq_no=response["_seq_no"],
            primary_term=response["_primary_term"],
            policy=response.get("policy", {}),
        )

    def put_policy(self, policy_id: str, policy: Dict[str, Any], seq_no: int, primary_term: int) -> PolicyVersion:
        """Conditional write: fails with VersionConflictError if the policy changed since it was read"""
        try:
            response = self.client.plugins.index_management.put_policy(
                policy=policy_id,
                body={"policy": policy},
                params={"if_seq_no": seq_no, "if_primary_term": primary_term},
            )
        except ConflictError as e:
            raise VersionConflictError(f"ISM policy {policy_id}", seq_no, primary_term) from e
        # The write response wraps the stored document as {"policy": {"policy": {...}}}
        return PolicyVersion(
            policy_id=response.get("_id", policy_id),
            seq_no=response.get("_seq_no", seq_no),
            primary_term=response.get("_primary_term", primary_term),
            policy=response.get("policy", {}).get("policy", policy),
        )

    ######################## Security Roles ##########################

    def get_role_mapping(self, role_name: str) -> Optional[RoleMapping]:
        try:
            response = self.client.security.get_role_mapping(role=role_name)
        except NotFoundError:
            return None
        mapping = response.get(role_name, {})
        return RoleMapping(
            backend_roles=mapping.get("backend_roles", []),
            hosts=mapping.get("hosts", []),
            users=mapping.get("users", []),
        )

    def put_role_mapping(self, role_name: str, mapping: RoleMapping) -> None:
        self.client.security.create_role_mapping(role=role_name, body=mapping.body())

    def get_role(self, role_name: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.client.security.get_role(role=role_name)
        except NotFoundError:
            return None
        return response.get(role_name, {})

    def put_role(self, role_name: str, definition: Dict[str, Any]) -> None:
        self.client.security.create_role(role=role_name, body=definition)

    ######################## Dashboards ##########################

    def create_index_pattern(self, pattern_id: str, title: str, time_field: str) -> bool:
        """Returns False when an index pattern with this id already exists"""
        # Saved objects live in the dashboards API, which has no client namespace
        try:
            self.client.transport.perform_request(
                "POST",
                f"{INDEX_PATTERN_PATH}/{pattern_id}",
                body={"attributes": {"title": title, "timeFieldName": time_field}},
                headers={"osd-xsrf": "true"},
            )
        except ConflictError:
            logger.info(f"Index pattern {pattern_id} already exists")
            return False
        logger.info(f"Index pattern {pattern_id} created")
        return True
