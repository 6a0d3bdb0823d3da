"""Components package for Pulumi infrastructure.

ECS Fargate Architecture:
- VPCComponent: Public/private subnets with NAT egress
- ECRComponent / ImageComponent: API image registry and build
- SecretsComponent: Application secret and task execution role
- DatabaseComponent: Aurora PostgreSQL
- ECSServiceComponent: Fargate service behind an ALB
- DNSComponent: ACM certificate and Route 53 alias
- GitHubOIDCComponent: Deploy role for GitHub Actions
"""

from components.database import DatabaseComponent
from components.dns import DNSComponent
from components.ecr import ECRComponent
from components.github_oidc import GitHubOIDCComponent
from components.image import ImageComponent
from components.secrets import SecretsComponent
from components.service import ECSServiceComponent
from components.vpc import VPCComponent

__all__ = [
    "DNSComponent",
    "DatabaseComponent",
    "ECRComponent",
    "ECSServiceComponent",
    "GitHubOIDCComponent",
    "ImageComponent",
    "SecretsComponent",
    "VPCComponent",
]
