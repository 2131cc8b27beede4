#  Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0

import re

#Define patterns as global constants
index_name_pattern = r'^[a-z0-9][a-z0-9_\-]{0,199}$'
pipeline_name_pattern = r'^[a-z][a-z0-9\-]{2,27}$'
queue_name_pattern = r'^[a-zA-Z0-9_\-]{1,80}$'
delivery_stream_name_pattern = r'^[a-zA-Z0-9_.\-]{1,64}$'
bucket_name_pattern = r'^[a-z0-9][a-z0-9.\-]{1,61}[a-z0-9]$'
log_group_name_pattern = r'^[\.\-_/#A-Za-z0-9]{1,512}$'
arn_pattern = r'^arn:aws[a-zA-Z\-]*:[a-z0-9\-]+:[a-z0-9\-]*:[0-9]{0,12}:.+$'
backend_role_pattern = r'^[^,\s][^,]{0,255}$'

#Define local regexes that use the patterns
index_name_regex = re.compile(index_name_pattern)
pipeline_name_regex = re.compile(pipeline_name_pattern)
queue_name_regex = re.compile(queue_name_pattern)
delivery_stream_name_regex = re.compile(delivery_stream_name_pattern)
bucket_name_regex = re.compile(bucket_name_pattern)
log_group_name_regex = re.compile(log_group_name_pattern)
arn_regex = re.compile(arn_pattern)
backend_role_regex = re.compile(backend_role_pattern)


def _validate_pattern(name, value, regex, pattern):
    if not regex.fullmatch(value):
        return (False, name + " is invalid. Must follow the regexp " + pattern)
    return (True, '')


def validate_index_name(name, value):
    return _validate_pattern(name, value, index_name_regex, index_name_pattern)


def validate_pipeline_name(name, value):
    return _validate_pattern(name, value, pipeline_name_regex, pipeline_name_pattern)


def validate_queue_name(name, value):
    return _validate_pattern(name, value, queue_name_regex, queue_name_pattern)


def validate_delivery_stream_name(name, value):
    return _validate_pattern(name, value, delivery_stream_name_regex, delivery_stream_name_pattern)


def validate_bucket_name(name, value):
    if '..' in value:
        return (False, name + " is invalid. Cannot contain more than one '.' in sequence.")
    return _validate_pattern(name, value, bucket_name_regex, bucket_name_pattern)


def validate_log_group_name(name, value):
    return _validate_pattern(name, value, log_group_name_regex, log_group_name_pattern)


def validate_arn(name, value):
    return _validate_pattern(name, value, arn_regex, arn_pattern)


def validate_backend_role_array(name, values):
    for value in values:
        (valid, message) = _validate_pattern(name, value, backend_role_regex, backend_role_pattern)
        if not valid:
            return (valid, message)
    return (True, '')


validators = {
    'INDEX_NAME': validate_index_name,
    'PIPELINE_NAME': validate_pipeline_name,
    'QUEUE_NAME': validate_queue_name,
    'DELIVERY_STREAM_NAME': validate_delivery_stream_name,
    'BUCKET_NAME': validate_bucket_name,
    'LOG_GROUP_NAME': validate_log_group_name,
    'ARN': validate_arn,
    'BACKEND_ROLE_ARRAY': validate_backend_role_array,
}


def validate(values):
    for k, v in values.items():

        optional = False
        if 'optional' in v:
            if not isinstance(v['optional'], bool):
                raise Exception("The optional field in validator for " + k + " field must be of type bool")
            optional = v['optional']

        if v['validator'] not in validators:
            raise Exception("Unknown validator " + str(v['validator']) + " for " + k + " field")

        #Empty checks across types. If optional, skip. Otherwise error on empty.
        if v['value'] is None or len(v['value']) == 0:
            if optional:
                continue
            return (False, k + " is a required field.")

        #Check input types first. If not string or array for respective validator, error.
        if "_ARRAY" in v['validator'] and not isinstance(v['value'], list):
            return (False, k + " is invalid. Must be a list for array validators, not a " + str(type(v['value'])))
        elif not "_ARRAY" in v['validator'] and not isinstance(v['value'], str):
            return (False, k + " is invalid. Must be a string for non-array validators, not a " + str(type(v['value'])))

        (valid, message) = validators[v['validator']](k, v['value'])
        if not valid:
            return (valid, message)

    return (True, "")
