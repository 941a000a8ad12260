"""Tests for the boto3 ECS describer."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from ECSStreamer import ECSClient, ServiceNotFoundError
from tests.conftest import make_deployment


def test_service_returns_first_description():
    description = {'serviceName': 'frontend', 'deployments': [make_deployment()], 'events': []}
    boto_client = MagicMock()
    boto_client.describe_services.return_value = {'services': [description], 'failures': []}

    client = ECSClient(client=boto_client)

    assert client.service('prod', 'frontend') == description
    boto_client.describe_services.assert_called_once_with(cluster='prod', services=['frontend'])


def test_service_not_found_reports_failure_reason():
    boto_client = MagicMock()
    boto_client.describe_services.return_value = {
        'services': [],
        'failures': [{'arn': 'arn:aws:ecs:us-east-1:1111:service/prod/frontend', 'reason': 'MISSING'}],
    }

    with pytest.raises(ServiceNotFoundError, match="frontend in cluster prod: MISSING"):
        ECSClient(client=boto_client).service('prod', 'frontend')


def test_client_error_propagates():
    boto_client = MagicMock()
    boto_client.describe_services.side_effect = ClientError(
        {'Error': {'Code': 'ClusterNotFoundException', 'Message': 'Cluster not found.'}},
        'DescribeServices',
    )

    with pytest.raises(ClientError):
        ECSClient(client=boto_client).service('prod', 'frontend')
