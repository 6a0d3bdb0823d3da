"""GitHub OIDC Component - lets GitHub Actions deploy without stored AWS keys."""

import json

import pulumi
import pulumi_aws as aws

from components.policies import (
    ecs_deploy_policy,
    github_actions_trust_policy,
    state_bucket_policy,
)

GITHUB_OIDC_URL = "https://token.actions.githubusercontent.com"
# GitHub's OIDC token signing certificate thumbprint
GITHUB_OIDC_THUMBPRINT = "6938fd4d98bab03faadb97b34396831e3780aea1"

MANAGED_POLICY_ARNS = [
    "arn:aws:iam::aws:policy/AmazonECS_FullAccess",
    "arn:aws:iam::aws:policy/AmazonEC2ContainerRegistryFullAccess",
    "arn:aws:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy",
]


class GitHubOIDCComponent(pulumi.ComponentResource):
    """OIDC provider and the role GitHub Actions workflows assume."""

    def __init__(
        self,
        name: str,
        prefix: str,
        github_repo: str,
        state_bucket: str = "queso-state",
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        if not github_repo or "*" in github_repo:
            raise ValueError(f"github_repo must be a single owner/name, got {github_repo!r}")

        super().__init__("queso:security:GitHubOIDC", name, None, opts)

        self.tags = tags or {}

        self.provider = aws.iam.OpenIdConnectProvider(
            f"{name}-provider",
            url=GITHUB_OIDC_URL,
            client_id_lists=["sts.amazonaws.com"],
            thumbprint_lists=[GITHUB_OIDC_THUMBPRINT],
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.role = aws.iam.Role(
            f"{name}-role",
            name=f"{prefix}-github-actions-role",
            assume_role_policy=self.provider.arn.apply(
                lambda arn: json.dumps(github_actions_trust_policy(arn, github_repo))
            ),
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.state_bucket_policy = aws.iam.Policy(
            f"{name}-state-bucket-policy",
            name=f"{prefix}-state-bucket-policy",
            policy=json.dumps(state_bucket_policy(state_bucket)),
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.ecs_deploy_policy = aws.iam.Policy(
            f"{name}-ecs-deploy-policy",
            name=f"{prefix}-ecs-deploy-policy",
            policy=json.dumps(ecs_deploy_policy()),
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        for i, policy_arn in enumerate(MANAGED_POLICY_ARNS):
            aws.iam.RolePolicyAttachment(
                f"{name}-managed-policy-{i}",
                role=self.role.name,
                policy_arn=policy_arn,
                opts=pulumi.ResourceOptions(parent=self),
            )

        aws.iam.RolePolicyAttachment(
            f"{name}-state-bucket-attachment",
            role=self.role.name,
            policy_arn=self.state_bucket_policy.arn,
            opts=pulumi.ResourceOptions(parent=self),
        )

        aws.iam.RolePolicyAttachment(
            f"{name}-ecs-deploy-attachment",
            role=self.role.name,
            policy_arn=self.ecs_deploy_policy.arn,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.register_outputs(
            {
                "provider_arn": self.provider.arn,
                "role_arn": self.role.arn,
            }
        )
