"""Secrets Component - application secret and the ECS task execution role.

The secret name carries a random suffix. Secrets Manager keeps deleted
secrets in a recovery window during which the name cannot be reused, so a
fixed name would break destroy/recreate cycles.
"""

import json

import pulumi
import pulumi_aws as aws
import pulumi_random as random

from components.policies import assume_role_policy, secrets_read_policy

TASK_EXECUTION_POLICY_ARN = "arn:aws:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy"

# Keys of the JSON document stored in the application secret
APP_SECRET_KEYS = (
    "JWT_SECRET",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "SENTRY_DSN",
    "POSTHOG_API_KEY",
)


class SecretsComponent(pulumi.ComponentResource):
    """AWS Secrets Manager secret for the API plus the role that reads it."""

    def __init__(
        self,
        name: str,
        prefix: str,
        environment: str,
        jwt_secret: pulumi.Input[str] = "",
        google_client_id: pulumi.Input[str] = "",
        google_client_secret: pulumi.Input[str] = "",
        sentry_dsn: pulumi.Input[str] = "",
        posthog_api_key: pulumi.Input[str] = "",
        extra_secret_arns: list[pulumi.Input[str]] | None = None,
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("queso:security:Secrets", name, None, opts)

        self.tags = tags or {}

        self.suffix = random.RandomId(
            f"{name}-suffix",
            byte_length=4,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.secret = aws.secretsmanager.Secret(
            f"{name}-app-secrets",
            name=self.suffix.hex.apply(lambda s: f"{prefix}-{environment}-app-secrets-{s}"),
            description=f"Application secrets for Queso ({environment})",
            tags=self.suffix.hex.apply(
                lambda s: {**self.tags, "Name": f"{prefix}-app-secrets", "RandomSuffix": s}
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.secret_version = aws.secretsmanager.SecretVersion(
            f"{name}-app-secrets-version",
            secret_id=self.secret.id,
            secret_string=pulumi.Output.json_dumps(
                dict(
                    zip(
                        APP_SECRET_KEYS,
                        [
                            jwt_secret,
                            google_client_id,
                            google_client_secret,
                            sentry_dsn,
                            posthog_api_key,
                        ],
                    )
                )
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        # IAM Role for Task Execution (pulling images, writing logs, reading secrets)
        self.execution_role = aws.iam.Role(
            f"{name}-task-execution-role",
            assume_role_policy=json.dumps(assume_role_policy("ecs-tasks.amazonaws.com")),
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        aws.iam.RolePolicyAttachment(
            f"{name}-task-execution-policy",
            role=self.execution_role.name,
            policy_arn=TASK_EXECUTION_POLICY_ARN,
            opts=pulumi.ResourceOptions(parent=self),
        )

        readable = [self.secret.arn, *(extra_secret_arns or [])]
        aws.iam.RolePolicy(
            f"{name}-secrets-policy",
            role=self.execution_role.id,
            policy=pulumi.Output.all(*readable).apply(
                lambda arns: json.dumps(secrets_read_policy(list(arns)))
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.register_outputs(
            {
                "secret_arn": self.secret.arn,
                "execution_role_arn": self.execution_role.arn,
            }
        )
