"""Database Component - Aurora PostgreSQL for Queso.

Uses the VPC private subnets for database placement. Production runs two
r6g.large instances with deletion protection; every other stack runs a
single t4g.medium that can be torn down freely.
"""

import json
from urllib.parse import quote

import pulumi
import pulumi_aws as aws
import pulumi_random as random

from components.policies import assume_role_policy

DATABASE_NAME = "queso"
MASTER_USERNAME = "queso_admin"
ENGINE = "aurora-postgresql"
ENGINE_VERSION = "16.1"
MONITORING_POLICY_ARN = "arn:aws:iam::aws:policy/service-role/AmazonRDSEnhancedMonitoringRole"


def asyncpg_url(username: str, password: str, host: str, port: int, database: str) -> str:
    """DSN in the form the API's SQLAlchemy engine expects."""
    return f"postgresql+asyncpg://{username}:{quote(password, safe='')}@{host}:{port}/{database}"


def connection_details(password: str, host: str, port: int) -> dict:
    """JSON body of the connection secret; the API reads its ``url`` key."""
    return {
        "host": host,
        "port": port,
        "database": DATABASE_NAME,
        "username": MASTER_USERNAME,
        "password": password,
        "url": asyncpg_url(MASTER_USERNAME, password, host, port, DATABASE_NAME),
    }


class DatabaseComponent(pulumi.ComponentResource):
    """Aurora PostgreSQL cluster.

    Features:
    - Private subnet placement
    - Security group open to the private subnet CIDRs on 5432
    - Random master password, connection details in Secrets Manager
    - Performance Insights and enhanced monitoring
    """

    def __init__(
        self,
        name: str,
        prefix: str,
        environment: str,
        vpc_id: pulumi.Input[str],
        subnet_ids: pulumi.Input[list[str]],
        subnet_cidrs: list[str],
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("queso:database:Aurora", name, None, opts)

        self.tags = tags or {}
        self.environment = environment
        is_prod = environment == "prod"

        # Security group for PostgreSQL
        self.security_group = aws.ec2.SecurityGroup(
            f"{name}-sg",
            vpc_id=vpc_id,
            description="Security group for RDS Aurora cluster",
            ingress=[
                aws.ec2.SecurityGroupIngressArgs(
                    protocol="tcp",
                    from_port=5432,
                    to_port=5432,
                    cidr_blocks=list(subnet_cidrs),
                    description="PostgreSQL from private subnets",
                ),
            ],
            egress=[
                aws.ec2.SecurityGroupEgressArgs(
                    protocol="-1",
                    from_port=0,
                    to_port=0,
                    cidr_blocks=["0.0.0.0/0"],
                    description="Allow all outbound",
                ),
            ],
            tags={**self.tags, "Name": f"{prefix}-rds-sg"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # DB subnet group (uses private subnets)
        self.subnet_group = aws.rds.SubnetGroup(
            f"{name}-subnet-group",
            subnet_ids=subnet_ids,
            description=f"Subnet group for {prefix} Aurora cluster",
            tags={**self.tags, "Name": f"{prefix}-rds-subnet-group"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.master_password = random.RandomPassword(
            f"{name}-master-password",
            length=32,
            special=True,
            # RDS rejects '/', '@', '"' and spaces in master passwords
            override_special="-_!#%^*",
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.cluster = aws.rds.Cluster(
            f"{name}-cluster",
            engine=ENGINE,
            engine_version=ENGINE_VERSION,
            engine_mode="provisioned",
            database_name=DATABASE_NAME,
            master_username=MASTER_USERNAME,
            master_password=self.master_password.result,
            skip_final_snapshot=not is_prod,
            final_snapshot_identifier=f"{prefix}-{environment}-final" if is_prod else None,
            backup_retention_period=7 if is_prod else 1,
            preferred_backup_window="07:00-09:00",
            db_subnet_group_name=self.subnet_group.name,
            vpc_security_group_ids=[self.security_group.id],
            storage_encrypted=True,
            enabled_cloudwatch_logs_exports=["postgresql"],
            apply_immediately=not is_prod,
            copy_tags_to_snapshot=True,
            deletion_protection=is_prod,
            tags={**self.tags, "Name": f"{prefix}-aurora-cluster"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Enhanced monitoring needs a role RDS can assume
        self.monitoring_role = aws.iam.Role(
            f"{name}-monitoring-role",
            assume_role_policy=json.dumps(assume_role_policy("monitoring.rds.amazonaws.com")),
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        aws.iam.RolePolicyAttachment(
            f"{name}-monitoring-policy",
            role=self.monitoring_role.name,
            policy_arn=MONITORING_POLICY_ARN,
            opts=pulumi.ResourceOptions(parent=self),
        )

        instance_count = 2 if is_prod else 1
        instance_class = "db.r6g.large" if is_prod else "db.t4g.medium"
        self.instances: list[aws.rds.ClusterInstance] = [
            aws.rds.ClusterInstance(
                f"{name}-instance-{i}",
                cluster_identifier=self.cluster.id,
                instance_class=instance_class,
                engine=ENGINE,
                engine_version=self.cluster.engine_version,
                db_subnet_group_name=self.subnet_group.name,
                publicly_accessible=False,
                performance_insights_enabled=True,
                performance_insights_retention_period=7,
                monitoring_interval=60,
                monitoring_role_arn=self.monitoring_role.arn,
                auto_minor_version_upgrade=True,
                tags={**self.tags, "Name": f"{prefix}-aurora-instance-{i}"},
                opts=pulumi.ResourceOptions(parent=self),
            )
            for i in range(instance_count)
        ]

        self.endpoint = self.cluster.endpoint
        self.port = self.cluster.port

        details = pulumi.Output.all(
            self.master_password.result, self.cluster.endpoint, self.cluster.port
        ).apply(lambda args: connection_details(*args))
        self.connection_string = pulumi.Output.secret(details.apply(lambda d: d["url"]))

        # Store full connection details in Secrets Manager
        self.connection_secret = aws.secretsmanager.Secret(
            f"{name}-connection-secret",
            name_prefix=f"{prefix}-{environment}-db-connection-",
            description="PostgreSQL connection details",
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.connection_secret_version = aws.secretsmanager.SecretVersion(
            f"{name}-connection-value",
            secret_id=self.connection_secret.id,
            secret_string=pulumi.Output.secret(details.apply(json.dumps)),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.register_outputs(
            {
                "endpoint": self.endpoint,
                "port": self.port,
                "database_name": DATABASE_NAME,
                "connection_secret_arn": self.connection_secret.arn,
                "security_group_id": self.security_group.id,
            }
        )
