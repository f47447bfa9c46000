"""
Static infrastructure declaration for the tasklist app.

Declares one EC2 instance that runs the app and one S3 bucket. Every input
is a literal; the two resources do not reference each other and are applied
wholesale.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from deployment.aws.utils.aws_clients import get_ec2_client, get_s3_client
from tasklist_api.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)

PROJECT_TAG = "tasklist-app"
LIVE_INSTANCE_STATES = ["pending", "running", "stopping", "stopped"]


@dataclass(frozen=True)
class InstanceSpec:
    """Compute instance inputs."""
    name: str
    ami_id: str
    instance_type: str
    subnet_id: str
    key_name: str


@dataclass(frozen=True)
class BucketSpec:
    """Storage bucket inputs."""
    name: str


@dataclass(frozen=True)
class InfrastructureDeclaration:
    region: str
    instance: InstanceSpec
    bucket: BucketSpec


DECLARATION = InfrastructureDeclaration(
    region="us-east-1",
    instance=InstanceSpec(
        name="tasklist-app-server",
        ami_id="ami-0c02fb55956c7d316",
        instance_type="t2.micro",
        subnet_id="subnet-0a1b2c3d4e5f67890",
        key_name="tasklist-app-key",
    ),
    bucket=BucketSpec(name="tasklist-app-storage-bucket"),
)


def describe_declaration(declaration: InfrastructureDeclaration = DECLARATION) -> Dict[str, Any]:
    """Return the literal inputs of a declaration as a plain dict."""
    return asdict(declaration)


def find_existing_instance(ec2_client, spec: InstanceSpec) -> Optional[Dict[str, Any]]:
    """Find a live instance carrying the declared Name tag."""
    response = ec2_client.describe_instances(
        Filters=[
            {'Name': 'tag:Name', 'Values': [spec.name]},
            {'Name': 'instance-state-name', 'Values': LIVE_INSTANCE_STATES},
        ]
    )
    for reservation in response.get('Reservations', []):
        for instance in reservation.get('Instances', []):
            return instance
    return None


def _launch_instance(ec2_client, spec: InstanceSpec, wait: bool) -> str:
    response = ec2_client.run_instances(
        ImageId=spec.ami_id,
        InstanceType=spec.instance_type,
        KeyName=spec.key_name,
        SubnetId=spec.subnet_id,
        MinCount=1,
        MaxCount=1,
        TagSpecifications=[{
            'ResourceType': 'instance',
            'Tags': [
                {'Key': 'Name', 'Value': spec.name},
                {'Key': 'Project', 'Value': PROJECT_TAG},
            ]
        }],
    )
    instance_id = response['Instances'][0]['InstanceId']
    logger.info(f"Launched instance {instance_id} ({spec.instance_type}, {spec.ami_id})")

    if wait:
        logger.info("Waiting for instance to be running...")
        ec2_client.get_waiter('instance_running').wait(InstanceIds=[instance_id])
    return instance_id


def _create_bucket(s3_client, spec: BucketSpec, region: str) -> None:
    try:
        if region == 'us-east-1':
            s3_client.create_bucket(Bucket=spec.name)
        else:
            s3_client.create_bucket(
                Bucket=spec.name,
                CreateBucketConfiguration={'LocationConstraint': region}
            )
        logger.info(f"Created S3 bucket: {spec.name}")
    except ClientError as e:
        if e.response['Error']['Code'] == 'BucketAlreadyOwnedByYou':
            logger.info(f"S3 bucket already owned by you: {spec.name}")
            return
        logger.error(f"Error creating S3 bucket {spec.name}: {e}")
        raise


@log_execution_time
def apply_declaration(
    declaration: InfrastructureDeclaration = DECLARATION,
    ec2_client=None,
    s3_client=None,
    wait: bool = True,
) -> Dict[str, Any]:
    """Create the declared instance and bucket.

    A live instance with the declared Name tag is reused rather than launched
    again. Any AWS error propagates; nothing already created is rolled back.
    """
    ec2_client = ec2_client or get_ec2_client(declaration.region)
    s3_client = s3_client or get_s3_client(declaration.region)

    existing = find_existing_instance(ec2_client, declaration.instance)
    if existing:
        instance_id = existing['InstanceId']
        logger.info(f"Using existing instance: {instance_id}")
    else:
        instance_id = _launch_instance(ec2_client, declaration.instance, wait)

    _create_bucket(s3_client, declaration.bucket, declaration.region)

    return {
        'region': declaration.region,
        'instance_id': instance_id,
        'bucket_name': declaration.bucket.name,
    }


@log_execution_time
def destroy_declaration(
    declaration: InfrastructureDeclaration = DECLARATION,
    ec2_client=None,
    s3_client=None,
) -> Dict[str, Any]:
    """Terminate the declared instance and delete the declared bucket."""
    ec2_client = ec2_client or get_ec2_client(declaration.region)
    s3_client = s3_client or get_s3_client(declaration.region)
    results = {'instance_terminated': None, 'bucket_deleted': False}

    existing = find_existing_instance(ec2_client, declaration.instance)
    if existing:
        ec2_client.terminate_instances(InstanceIds=[existing['InstanceId']])
        results['instance_terminated'] = existing['InstanceId']
        logger.info(f"Terminated instance: {existing['InstanceId']}")
    else:
        logger.info(f"No live instance tagged {declaration.instance.name}")

    try:
        s3_client.delete_bucket(Bucket=declaration.bucket.name)
        results['bucket_deleted'] = True
        logger.info(f"Deleted S3 bucket: {declaration.bucket.name}")
    except ClientError as e:
        if e.response['Error']['Code'] == 'NoSuchBucket':
            logger.info(f"S3 bucket not found (already deleted): {declaration.bucket.name}")
        else:
            raise

    return results
