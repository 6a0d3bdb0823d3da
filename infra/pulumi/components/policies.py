"""IAM policy documents.

Plain functions returning policy dicts so they can be tested without
Pulumi. Callers ``json.dumps`` them (or wrap in ``Output.json_dumps`` when
an input is an Output).
"""

POLICY_VERSION = "2012-10-17"
GITHUB_OIDC_HOST = "token.actions.githubusercontent.com"

ECS_DEPLOY_ACTIONS = [
    # CloudWatch Logs
    "logs:CreateLogGroup",
    "logs:CreateLogStream",
    "logs:PutLogEvents",
    "logs:DescribeLogGroups",
    "logs:DescribeLogStreams",
    "logs:TagResource",
    "logs:PutRetentionPolicy",
    # ECS
    "ecs:DescribeServices",
    "ecs:UpdateService",
    "ecs:DescribeTaskDefinition",
    "ecs:RegisterTaskDefinition",
    "ecs:CreateCluster",
    "ecs:DeleteCluster",
    # IAM
    "iam:CreateRole",
    "iam:DeleteRole",
    "iam:GetRole",
    "iam:PutRolePolicy",
    "iam:DeleteRolePolicy",
    "iam:ListRolePolicies",
    "iam:ListAttachedRolePolicies",
    "iam:AttachRolePolicy",
    "iam:DetachRolePolicy",
    "iam:PassRole",
    # Load balancing
    "elasticloadbalancing:Describe*",
    "elasticloadbalancing:DeregisterInstancesFromLoadBalancer",
    "elasticloadbalancing:RegisterInstancesWithLoadBalancer",
    "elasticloadbalancing:RegisterTargets",
    "elasticloadbalancing:DeregisterTargets",
    "elasticloadbalancing:CreateLoadBalancer",
    "elasticloadbalancing:DeleteLoadBalancer",
    "elasticloadbalancing:CreateTargetGroup",
    "elasticloadbalancing:DeleteTargetGroup",
    "elasticloadbalancing:CreateListener",
    "elasticloadbalancing:DeleteListener",
    # EC2 networking
    "ec2:CreateVpc",
    "ec2:DeleteVpc",
    "ec2:CreateTags",
    "ec2:DeleteTags",
    "ec2:CreateSubnet",
    "ec2:DeleteSubnet",
    "ec2:CreateRouteTable",
    "ec2:DeleteRouteTable",
    "ec2:CreateRoute",
    "ec2:DeleteRoute",
    "ec2:CreateInternetGateway",
    "ec2:DeleteInternetGateway",
    "ec2:CreateNatGateway",
    "ec2:DeleteNatGateway",
    "ec2:CreateSecurityGroup",
    "ec2:DeleteSecurityGroup",
    "ec2:AuthorizeSecurityGroupIngress",
    "ec2:RevokeSecurityGroupIngress",
    "ec2:AuthorizeSecurityGroupEgress",
    "ec2:RevokeSecurityGroupEgress",
    "ec2:AllocateAddress",
    "ec2:ReleaseAddress",
    "ec2:AssociateRouteTable",
    "ec2:DisassociateRouteTable",
    "ec2:AttachInternetGateway",
    "ec2:DetachInternetGateway",
    "ec2:ModifyVpcAttribute",
    "ec2:DescribeVpcs",
    "ec2:DescribeSubnets",
    "ec2:DescribeRouteTables",
    "ec2:DescribeInternetGateways",
    "ec2:DescribeNatGateways",
    "ec2:DescribeSecurityGroups",
    "ec2:DescribeAddresses",
    "ec2:DescribeAvailabilityZones",
    "ec2:DescribeVpcAttribute",
]


def assume_role_policy(service: str) -> dict:
    """Trust policy letting an AWS service principal assume a role."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Action": "sts:AssumeRole",
                "Effect": "Allow",
                "Principal": {"Service": service},
            }
        ],
    }


def github_actions_trust_policy(provider_arn: str, repo: str) -> dict:
    """Trust policy for GitHub Actions workflows of ``repo`` via OIDC."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Federated": provider_arn},
                "Action": "sts:AssumeRoleWithWebIdentity",
                "Condition": {
                    "StringLike": {f"{GITHUB_OIDC_HOST}:sub": f"repo:{repo}:*"},
                    "StringEquals": {f"{GITHUB_OIDC_HOST}:aud": "sts.amazonaws.com"},
                },
            }
        ],
    }


def state_bucket_policy(bucket: str) -> dict:
    """Read/write access to the Pulumi state bucket."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Action": [
                    "s3:GetObject",
                    "s3:PutObject",
                    "s3:ListBucket",
                    "s3:DeleteObject",
                ],
                "Resource": [
                    f"arn:aws:s3:::{bucket}",
                    f"arn:aws:s3:::{bucket}/*",
                ],
            }
        ],
    }


def ecs_deploy_policy() -> dict:
    """Permissions the CI role needs to roll out the ECS stack."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Action": list(ECS_DEPLOY_ACTIONS),
                "Resource": "*",
            }
        ],
    }


def secrets_read_policy(secret_arns: list[str]) -> dict:
    """Allow reading (and decrypting) the given Secrets Manager secrets."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Action": ["secretsmanager:GetSecretValue", "kms:Decrypt"],
                "Resource": list(secret_arns),
            }
        ],
    }


def ecr_lifecycle_policy(keep: int = 5) -> dict:
    """Expire all but the most recent ``keep`` images."""
    return {
        "rules": [
            {
                "rulePriority": 1,
                "description": f"Keep last {keep} images",
                "selection": {
                    "tagStatus": "any",
                    "countType": "imageCountMoreThan",
                    "countNumber": keep,
                },
                "action": {"type": "expire"},
            }
        ]
    }
