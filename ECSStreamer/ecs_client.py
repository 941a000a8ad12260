"""
ECS Service Describer

Thin boto3 wrapper returning the raw description of a single ECS service.
"""

import boto3
from typing import Dict


class ServiceNotFoundError(Exception):
    """Raised when ECS has no description for the requested service"""
    pass


class ECSClient:
    """
    Describes ECS services through boto3.
    Satisfies the describer interface expected by ECSDeploymentStreamer.
    """

    def __init__(self, region: str = 'us-east-1', client=None):
        """
        Initialize the ECS client.

        Args:
            region: AWS region (default: us-east-1)
            client: Pre-built boto3 ECS client (optional)
        """
        self.region = region
        self.ecs_client = client or boto3.client('ecs', region_name=region)

    def service(self, cluster: str, service: str) -> Dict:
        """
        Describe one service of a cluster.

        Args:
            cluster: Cluster name or ARN
            service: Service name or ARN

        Returns:
            The boto3 service description, including 'deployments' and 'events'

        Raises:
            ServiceNotFoundError: if ECS returns no matching service
            botocore.exceptions.ClientError: on any API failure
        """
        response = self.ecs_client.describe_services(cluster=cluster, services=[service])

        services = response.get('services', [])
        if not services:
            reason = ''
            failures = response.get('failures', [])
            if failures:
                reason = f": {failures[0].get('reason', 'unknown reason')}"
            raise ServiceNotFoundError(
                f"cannot find service {service} in cluster {cluster}{reason}"
            )

        return services[0]
