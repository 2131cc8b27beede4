# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Callable, Iterable, Optional
from botocore.exceptions import ClientError
from common import client_error_code
from customLogging.logger import safeLogger
from models.common import EnsureResult, ResourceNotFoundError

logger = safeLogger(service="ResourceProvisioner")

# Describe attempts made after a create lost the race to a concurrent invocation
RACE_DESCRIBE_ATTEMPTS = 2


def ensure_resource(
    resource_type: str,
    name: str,
    describe_fn: Callable[[], Optional[str]],
    create_fn: Callable[[], Optional[str]],
    already_exists_codes: Iterable[str]
) -> EnsureResult:
    """
    Get-or-create a resource by its deterministic name.

    describe_fn returns the resource handle, or None when the backend reports it as not
    found. When create_fn fails because a concurrent invocation created the resource
    first, the winner's handle is picked up by describing again. Any other error
    propagates.
    """
    handle = describe_fn()
    if handle is not None:
        logger.info(f"{resource_type} {name} already exists")
        return EnsureResult(already_existed=True, handle=handle)

    logger.info(f"{resource_type} {name} not found, creating")
    try:
        handle = create_fn()
        logger.info(f"{resource_type} {name} created")
        return EnsureResult(already_existed=False, handle=handle)
    except ClientError as e:
        if client_error_code(e) not in already_exists_codes:
            logger.exception(f"Failed to create {resource_type} {name}")
            raise

    logger.info(f"{resource_type} {name} was created concurrently, describing again")
    for _ in range(RACE_DESCRIBE_ATTEMPTS):
        handle = describe_fn()
        if handle is not None:
            return EnsureResult(already_existed=True, handle=handle)

    raise ResourceNotFoundError(resource_type, name)
