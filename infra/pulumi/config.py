"""Stack configuration for the Queso deployment.

Values come from ``pulumi config``; anything unset falls back to the
defaults below. Secrets (JWT and OAuth credentials) are read as Pulumi
secrets and never leave the Output graph in plain text.
"""

from dataclasses import dataclass, field

import pulumi

ECR_REPOSITORY_NAME_MAX_LENGTH = 255


def validate_ecr_repository_name(name: str) -> str:
    """Return ``name`` if it is a usable ECR repository name.

    Raises:
        ValueError: If the name is empty or longer than 255 characters
    """
    if not name:
        raise ValueError("ECR repository name must not be empty")
    if len(name) > ECR_REPOSITORY_NAME_MAX_LENGTH:
        raise ValueError(
            f"ECR repository name must be at most {ECR_REPOSITORY_NAME_MAX_LENGTH} "
            f"characters, got {len(name)}"
        )
    return name


def validate_github_repo(repo: str) -> str:
    """Return ``repo`` if it names one repository (``owner/name``).

    The CI role trusts workflows of this repository only, so wildcards
    would let any GitHub Actions workflow assume it.

    Raises:
        ValueError: If the repository is empty or contains a wildcard
    """
    if not repo or "*" in repo:
        raise ValueError(
            "githubRepo must name a single repository (owner/name) when githubOidc "
            "is enabled; set githubRepo or disable githubOidc"
        )
    return repo


@dataclass
class AppSecrets:
    """Secret config values bundled into the application secret."""

    jwt_secret: pulumi.Input[str] = ""
    google_client_id: pulumi.Input[str] = ""
    google_client_secret: pulumi.Input[str] = ""
    sentry_dsn: pulumi.Input[str] = ""
    posthog_api_key: pulumi.Input[str] = ""


@dataclass
class AppConfig:
    """Settings shared by every component in the stack."""

    environment: str
    prefix: str = "queso"
    region: str = "us-east-1"
    vpc_cidr: str = "10.0.0.0/16"
    public_subnet_cidrs: list[str] = field(default_factory=lambda: ["10.0.1.0/24", "10.0.2.0/24"])
    private_subnet_cidrs: list[str] = field(
        default_factory=lambda: ["10.0.3.0/24", "10.0.4.0/24"]
    )
    container_port: int = 3000
    desired_count: int = 2
    cpu: int = 256
    memory: int = 512
    health_check_path: str = "/health"
    ecr_repository_name: str = "queso"
    domain_name: str | None = None
    github_repo: str = ""
    github_oidc: bool = True
    state_bucket: str = "queso-state"
    image_tag: str = "latest"
    build_image: bool = False
    frontend_url: str = "http://localhost:5173"
    secrets: AppSecrets = field(default_factory=AppSecrets)

    @property
    def is_prod(self) -> bool:
        return self.environment == "prod"

    @property
    def tags(self) -> dict[str, str]:
        return {
            "Project": self.prefix,
            "Environment": self.environment,
            "ManagedBy": "pulumi",
        }


def load_app_config() -> AppConfig:
    """Build AppConfig from the current stack's configuration.

    Raises:
        ValueError: Invalid repository name, mismatched subnet CIDR lists, or
            GitHub OIDC enabled without a specific githubRepo
    """
    config = pulumi.Config()
    aws_config = pulumi.Config("aws")
    defaults = AppConfig(environment=pulumi.get_stack())

    public_cidrs = config.get_object("publicSubnetCidrs") or defaults.public_subnet_cidrs
    private_cidrs = config.get_object("privateSubnetCidrs") or defaults.private_subnet_cidrs
    if len(public_cidrs) != len(private_cidrs):
        raise ValueError(
            "publicSubnetCidrs and privateSubnetCidrs must have the same length "
            f"({len(public_cidrs)} != {len(private_cidrs)})"
        )

    github_oidc = config.get_bool("githubOidc")
    github_oidc = defaults.github_oidc if github_oidc is None else github_oidc
    github_repo = config.get("githubRepo") or defaults.github_repo
    if github_oidc:
        validate_github_repo(github_repo)

    return AppConfig(
        environment=config.get("environment") or defaults.environment,
        prefix=config.get("prefix") or defaults.prefix,
        region=aws_config.get("region") or defaults.region,
        vpc_cidr=config.get("vpcCidr") or defaults.vpc_cidr,
        public_subnet_cidrs=list(public_cidrs),
        private_subnet_cidrs=list(private_cidrs),
        container_port=config.get_int("containerPort") or defaults.container_port,
        desired_count=config.get_int("desiredCount") or defaults.desired_count,
        cpu=config.get_int("cpu") or defaults.cpu,
        memory=config.get_int("memory") or defaults.memory,
        health_check_path=config.get("healthCheckPath") or defaults.health_check_path,
        ecr_repository_name=validate_ecr_repository_name(
            config.get("ecrRepositoryName") or defaults.ecr_repository_name
        ),
        domain_name=config.get("domainName") or None,
        github_repo=github_repo,
        github_oidc=github_oidc,
        state_bucket=config.get("stateBucket") or defaults.state_bucket,
        image_tag=config.get("imageTag") or defaults.image_tag,
        build_image=bool(config.get_bool("buildImage")),
        frontend_url=config.get("frontendUrl") or defaults.frontend_url,
        secrets=AppSecrets(
            jwt_secret=config.get_secret("jwtSecret") or "",
            google_client_id=config.get_secret("googleClientId") or "",
            google_client_secret=config.get_secret("googleClientSecret") or "",
            sentry_dsn=config.get_secret("sentryDsn") or "",
            posthog_api_key=config.get_secret("posthogApiKey") or "",
        ),
    )
