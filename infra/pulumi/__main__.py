"""Queso Infrastructure - Main Entry Point.

This module orchestrates all AWS infrastructure components for the
Queso API using Pulumi with an ECS Fargate architecture.

Architecture:
- Network: VPC with public (ALB, NAT) and private (tasks, database) subnets
- Registry: ECR, optionally built and pushed from this program
- Database: Aurora PostgreSQL with connection details in Secrets Manager
- API: ECS Fargate service behind an Application Load Balancer
- DNS: ACM certificate + Route 53 alias when a domain is configured
- CI: GitHub Actions OIDC deploy role
"""

import pulumi

from components.database import DatabaseComponent
from components.dns import DNSComponent
from components.ecr import ECRComponent
from components.github_oidc import GitHubOIDCComponent
from components.image import ImageComponent
from components.secrets import SecretsComponent
from components.service import ECSServiceComponent
from components.vpc import VPCComponent
from config import load_app_config

app = load_app_config()
prefix = app.prefix
environment = app.environment
common_tags = app.tags

# =============================================================================
# VPC - Network Foundation
# =============================================================================
vpc = VPCComponent(
    f"{prefix}-{environment}-vpc",
    environment=environment,
    cidr_block=app.vpc_cidr,
    public_subnet_cidrs=app.public_subnet_cidrs,
    private_subnet_cidrs=app.private_subnet_cidrs,
    tags=common_tags,
)

# =============================================================================
# ECR - Container Registry (+ optional image build)
# =============================================================================
ecr = ECRComponent(
    f"{prefix}-{environment}-ecr",
    repository_name=app.ecr_repository_name,
    tags=common_tags,
)

image = (
    ImageComponent(
        f"{prefix}-{environment}-image",
        repository=ecr.repository,
        context="../..",
        dockerfile="../../backend/Dockerfile",
        image_tag=app.image_tag,
        tags=common_tags,
    )
    if app.build_image
    else None
)
# The task definition pins the built image by digest so every rebuild rolls out
if image:
    task_image = image.image_ref
else:
    pulumi.log.info(f"buildImage is off, deploying existing tag {app.image_tag!r}")
    task_image = ecr.repository_url.apply(lambda url: f"{url}:{app.image_tag}")

# =============================================================================
# Database - Aurora PostgreSQL
# =============================================================================
database = DatabaseComponent(
    f"{prefix}-{environment}-database",
    prefix=prefix,
    environment=environment,
    vpc_id=vpc.vpc.id,
    subnet_ids=vpc.private_subnet_ids,
    subnet_cidrs=vpc.private_subnet_cidrs,
    tags=common_tags,
)

# =============================================================================
# Secrets Manager + task execution role
# =============================================================================
secrets = SecretsComponent(
    f"{prefix}-{environment}-secrets",
    prefix=prefix,
    environment=environment,
    jwt_secret=app.secrets.jwt_secret,
    google_client_id=app.secrets.google_client_id,
    google_client_secret=app.secrets.google_client_secret,
    sentry_dsn=app.secrets.sentry_dsn,
    posthog_api_key=app.secrets.posthog_api_key,
    extra_secret_arns=[database.connection_secret.arn],
    tags=common_tags,
)

# =============================================================================
# DNS - certificate first, the alias follows once the ALB exists
# =============================================================================
dns = (
    DNSComponent(
        f"{prefix}-{environment}-dns",
        domain_name=app.domain_name,
        tags=common_tags,
    )
    if app.domain_name
    else None
)
if dns is None:
    pulumi.log.warn("domainName is not set, the load balancer serves plain HTTP only")

# =============================================================================
# ECS Service - Fargate + ALB
# =============================================================================
service = ECSServiceComponent(
    f"{prefix}-{environment}-ecs",
    prefix=prefix,
    environment=environment,
    region=app.region,
    vpc_id=vpc.vpc.id,
    public_subnet_ids=vpc.public_subnet_ids,
    private_subnet_ids=vpc.private_subnet_ids,
    image=task_image,
    execution_role_arn=secrets.execution_role.arn,
    app_secret_arn=secrets.secret.arn,
    database_secret_arn=database.connection_secret.arn,
    container_port=app.container_port,
    desired_count=app.desired_count,
    cpu=app.cpu,
    memory=app.memory,
    health_check_path=app.health_check_path,
    frontend_url=app.frontend_url,
    domain_name=app.domain_name,
    certificate_arn=dns.certificate_arn if dns else None,
    tags=common_tags,
)

if dns:
    dns.create_alias(service.alb)

# =============================================================================
# GitHub Actions OIDC
# =============================================================================
github_oidc = (
    GitHubOIDCComponent(
        f"{prefix}-github-oidc",
        prefix=prefix,
        github_repo=app.github_repo,
        state_bucket=app.state_bucket,
        tags=common_tags,
    )
    if app.github_oidc
    else None
)

# =============================================================================
# Exports
# =============================================================================

# VPC
pulumi.export("vpc_id", vpc.vpc.id)
pulumi.export("public_subnet_ids", vpc.public_subnet_ids)
pulumi.export("private_subnet_ids", vpc.private_subnet_ids)

# ECR
pulumi.export("repository_url", ecr.repository_url)

# Secrets
pulumi.export("app_secret_arn", secrets.secret.arn)

# Database
pulumi.export("database_endpoint", database.endpoint)
pulumi.export("database_connection_secret_arn", database.connection_secret.arn)

# ECS
pulumi.export("cluster_name", service.cluster.name)
pulumi.export("load_balancer_dns", service.alb.dns_name)
pulumi.export("service_name", service.service.name)

if image:
    pulumi.export("image_uri", image.image_uri)
    pulumi.export("image_ref", image.image_ref)

if dns:
    pulumi.export("certificate_arn", dns.certificate_arn)
    pulumi.export("app_url", f"https://{app.domain_name}")

if github_oidc:
    pulumi.export("github_actions_role_arn", github_oidc.role.arn)
