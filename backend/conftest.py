import sys
import os

# Add the Lambda source root to the Python path
backend_root = os.path.dirname(os.path.abspath(__file__))
sys.path.append(backend_root)
sys.path.append(os.path.join(backend_root, 'backend'))

# Set environment variables for testing
os.environ['AWS_REGION'] = 'us-east-1'
os.environ['AWS_DEFAULT_REGION'] = 'us-east-1'
os.environ['POWERTOOLS_SERVICE_NAME'] = 'overwatch-tests'

# Ingestion handler
os.environ['OSIS_ROLE_ARN'] = 'arn:aws:iam::123456789012:role/osis-pipeline-role'
os.environ['OPEN_SEARCH_ENDPOINT'] = 'https://search-overwatch.us-east-1.es.amazonaws.com'
os.environ['OPEN_SEARCH_MASTER_ROLE_ARN'] = 'arn:aws:iam::123456789012:role/opensearch-master-role'

# Config handler
os.environ['OPEN_SEARCH_ACCESS_ROLE_ARN'] = 'arn:aws:iam::123456789012:role/opensearch-access-role'
os.environ['DEV_ROLE_BACKEND_IDS'] = 'dev-group-1,dev-group-2'

# AutoLog handler
os.environ['DELIVERY_STREAM_ROLE_ARN'] = 'arn:aws:iam::123456789012:role/autolog-delivery-stream-role'
os.environ['SUBSCRIPTION_FILTER_ROLE_ARN'] = 'arn:aws:iam::123456789012:role/autolog-subscription-filter-role'
os.environ['DELIVERY_STREAM_LOG_GROUP_NAME'] = '/overwatch/autolog/delivery-streams'

# AWS credentials for testing
os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
os.environ['AWS_SECURITY_TOKEN'] = 'testing'
os.environ['AWS_SESSION_TOKEN'] = 'testing'
