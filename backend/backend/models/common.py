# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Optional
from pydantic import BaseModel, Field


class EnsureResult(BaseModel):
    """Outcome of an ensure-exists call: whether the resource was already there, plus its handle"""
    already_existed: bool
    handle: Optional[str] = Field(None, description="Queue URL, log group name, pipeline ARN or delivery stream ARN")


#Define Overwatch Custom Exceptions

class OverwatchError(Exception):
    pass


class ResourceNotFoundError(OverwatchError):
    def __init__(self, resource_type: str, name: str):
        super().__init__(f"{resource_type} {name} not found")
        self.resource_type = resource_type
        self.name = name


class VersionConflictError(OverwatchError):
    def __init__(self, document: str, seq_no: Any, primary_term: Any):
        super().__init__(
            f"{document} was modified concurrently (seq_no={seq_no}, primary_term={primary_term})")
        self.document = document
        self.seq_no = seq_no
        self.primary_term = primary_term


class ValidationFailure(OverwatchError):
    pass


class ActivationTimeoutError(OverwatchError):
    def __init__(self, name: str, attempts: int):
        super().__init__(f"{name} did not become ready after {attempts} attempts")
        self.name = name
        self.attempts = attempts


class ActivationFailedError(OverwatchError):
    def __init__(self, name: str, status: Optional[str]):
        super().__init__(f"{name} cannot become ready from status {status}")
        self.name = name
        self.status = status
