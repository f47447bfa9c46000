"""AWS utility functions and client management."""
import os
import boto3
import logging
from typing import Any
from tasklist_api.config.settings import get_settings

logger = logging.getLogger(__name__)


class AWSClientManager:
    """Singleton manager for AWS service clients."""
    _instance = None
    _clients = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(AWSClientManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize the client manager with settings."""
        self.settings = get_settings()

        self.region = self.settings.aws_region
        self.endpoint_url = self.settings.aws_endpoint_url
        self.mode = self.settings.deployment_mode

        logger.info("Initializing AWSClientManager")
        logger.info(f"  Mode: {self.mode}")
        logger.info(f"  Region: {self.region}")
        logger.info(f"  Endpoint: {self.endpoint_url}")

    def get_client(self, service_name: str, region: str = None) -> Any:
        """Get or create an AWS service client."""
        region = region or self.region
        cache_key = (service_name, region)
        if cache_key in self._clients:
            return self._clients[cache_key]

        client_kwargs = {
            'region_name': region
        }

        # Check for AWS profile in environment (for SSO)
        aws_profile = os.environ.get('AWS_PROFILE')
        if aws_profile and self.mode == 'aws-prod':
            session = boto3.Session(profile_name=aws_profile)
            client = session.client(service_name, region_name=region)
            self._clients[cache_key] = client
            logger.debug(f"Created {service_name} client using profile: {aws_profile}")
            return client

        if self.settings.aws_access_key_id:
            client_kwargs['aws_access_key_id'] = self.settings.aws_access_key_id
        if self.settings.aws_secret_access_key:
            client_kwargs['aws_secret_access_key'] = self.settings.aws_secret_access_key

        # Endpoint URL only applies to local/mock modes
        if self.endpoint_url and self.mode in ['local-dev', 'aws-mock']:
            client_kwargs['endpoint_url'] = self.endpoint_url

        try:
            client = boto3.client(service_name, **client_kwargs)
            self._clients[cache_key] = client
            logger.debug(f"Created {service_name} client")
            return client
        except Exception as e:
            logger.error(f"Error creating {service_name} client: {str(e)}")
            raise


def get_ec2_client(region: str = None):
    """Get the EC2 client."""
    return AWSClientManager().get_client('ec2', region)


def get_s3_client(region: str = None):
    """Get the S3 client."""
    return AWSClientManager().get_client('s3', region)
