# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from customLogging.logger import safeLogger

logger = safeLogger(service="CallerIdentity")


class CallerIdentity:
    """
    Account id and partition of the running Lambda.

    Resolved through STS on first use and memoized on the instance. Build one instance
    per invocation so nothing is cached across runs.
    """

    def __init__(self, sts_client):
        self.sts_client = sts_client
        self._identity = None

    def _resolve(self):
        if self._identity is None:
            response = self.sts_client.get_caller_identity()
            self._identity = {
                "account": response["Account"],
                "partition": response["Arn"].split(":")[1],
            }
            logger.info(f"Resolved caller account {self._identity['account']}")
        return self._identity

    @property
    def account_id(self) -> str:
        return self._resolve()["account"]

    @property
    def partition(self) -> str:
        return self._resolve()["partition"]

    def log_group_arn(self, region: str, log_group_name: str) -> str:
        return f"arn:{self.partition}:logs:{region}:{self.account_id}:log-group:{log_group_name}"
