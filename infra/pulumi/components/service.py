"""ECS Service Component - the API on Fargate behind an Application Load Balancer."""

import json

import pulumi
import pulumi_aws as aws

from components.secrets import APP_SECRET_KEYS

TLS_POLICY = "ELBSecurityPolicy-TLS13-1-2-2021-06"


def secret_ref(secret_arn: str, key: str) -> str:
    """ECS ``valueFrom`` for one key of a JSON secret."""
    return f"{secret_arn}:{key}::"


def build_container_definitions(
    name: str,
    image: str,
    container_port: int,
    region: str,
    log_group: str,
    environment: dict[str, str] | None = None,
    secrets: dict[str, str] | None = None,
) -> list[dict]:
    """Container definitions for the API task.

    Args:
        name: Container name; the service's load balancer block must match it
        image: Full image URI including tag
        container_port: Port the API listens on
        region: Region for the awslogs driver
        log_group: CloudWatch log group name
        environment: Plain environment variables
        secrets: Environment variable name -> Secrets Manager valueFrom
    """
    return [
        {
            "name": name,
            "image": image,
            "essential": True,
            "portMappings": [
                {
                    "containerPort": container_port,
                    "hostPort": container_port,
                    "protocol": "tcp",
                }
            ],
            "logConfiguration": {
                "logDriver": "awslogs",
                "options": {
                    "awslogs-group": log_group,
                    "awslogs-region": region,
                    "awslogs-stream-prefix": "ecs",
                },
            },
            "environment": [
                {"name": key, "value": value} for key, value in sorted((environment or {}).items())
            ],
            "secrets": [
                {"name": key, "valueFrom": value} for key, value in sorted((secrets or {}).items())
            ],
        }
    ]


class ECSServiceComponent(pulumi.ComponentResource):
    """Fargate service, cluster, load balancer and listeners for the API."""

    def __init__(
        self,
        name: str,
        prefix: str,
        environment: str,
        region: str,
        vpc_id: pulumi.Input[str],
        public_subnet_ids: pulumi.Input[list[str]],
        private_subnet_ids: pulumi.Input[list[str]],
        image: pulumi.Input[str],
        execution_role_arn: pulumi.Input[str],
        app_secret_arn: pulumi.Input[str],
        database_secret_arn: pulumi.Input[str],
        container_port: int = 3000,
        desired_count: int = 2,
        cpu: int = 256,
        memory: int = 512,
        health_check_path: str = "/health",
        frontend_url: str = "http://localhost:5173",
        domain_name: str | None = None,
        certificate_arn: pulumi.Input[str] | None = None,
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("queso:compute:ECSService", name, None, opts)

        self.tags = tags or {}
        self.container_name = prefix

        self.cluster = aws.ecs.Cluster(
            f"{name}-cluster",
            tags={**self.tags, "Name": f"{prefix}-cluster"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Security group for the ALB - HTTP/HTTPS from anywhere
        self.alb_security_group = aws.ec2.SecurityGroup(
            f"{name}-alb-sg",
            vpc_id=vpc_id,
            description="Security group for ALB",
            ingress=[
                aws.ec2.SecurityGroupIngressArgs(
                    protocol="tcp",
                    from_port=port,
                    to_port=port,
                    cidr_blocks=["0.0.0.0/0"],
                    description=f"Port {port} from anywhere",
                )
                for port in (80, 443)
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
            tags={**self.tags, "Name": f"{prefix}-alb-sg"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Security group for tasks - container port from the ALB only
        self.task_security_group = aws.ec2.SecurityGroup(
            f"{name}-task-sg",
            vpc_id=vpc_id,
            description="Security group for ECS tasks",
            ingress=[
                aws.ec2.SecurityGroupIngressArgs(
                    protocol="tcp",
                    from_port=container_port,
                    to_port=container_port,
                    security_groups=[self.alb_security_group.id],
                    description="API from ALB",
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
            tags={**self.tags, "Name": f"{prefix}-ecs-sg"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.alb = aws.lb.LoadBalancer(
            f"{name}-alb",
            internal=False,
            load_balancer_type="application",
            security_groups=[self.alb_security_group.id],
            subnets=public_subnet_ids,
            tags={**self.tags, "Name": f"{prefix}-alb"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.target_group = aws.lb.TargetGroup(
            f"{name}-tg",
            port=container_port,
            protocol="HTTP",
            target_type="ip",
            vpc_id=vpc_id,
            health_check=aws.lb.TargetGroupHealthCheckArgs(
                enabled=True,
                path=health_check_path,
                port=str(container_port),
                protocol="HTTP",
                healthy_threshold=3,
                unhealthy_threshold=3,
                timeout=5,
                interval=30,
            ),
            tags={**self.tags, "Name": f"{prefix}-tg"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.listeners = self._create_listeners(name, certificate_arn)

        self.log_group = aws.cloudwatch.LogGroup(
            f"{name}-logs",
            name=f"/ecs/{prefix}",
            retention_in_days=30,
            tags={**self.tags, "Name": f"{prefix}-logs"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        env_vars = {
            "ENVIRONMENT": environment,
            "HOST": "0.0.0.0",
            "PORT": str(container_port),
            "FRONTEND_URL": frontend_url,
            "CORS_ORIGINS": json.dumps([frontend_url]),
            "AWS_REGION": region,
        }
        if domain_name:
            env_vars["GOOGLE_REDIRECT_URL"] = f"https://{domain_name}/api/auth/google/callback"

        self.task_definition = aws.ecs.TaskDefinition(
            f"{name}-task",
            family=prefix,
            cpu=str(cpu),
            memory=str(memory),
            network_mode="awsvpc",
            requires_compatibilities=["FARGATE"],
            execution_role_arn=execution_role_arn,
            container_definitions=pulumi.Output.all(
                image, self.log_group.name, app_secret_arn, database_secret_arn
            ).apply(
                lambda args: json.dumps(
                    build_container_definitions(
                        name=self.container_name,
                        image=args[0],
                        container_port=container_port,
                        region=region,
                        log_group=args[1],
                        environment=env_vars,
                        secrets={
                            **{key: secret_ref(args[2], key) for key in APP_SECRET_KEYS},
                            "DATABASE_URL": secret_ref(args[3], "url"),
                        },
                    )
                )
            ),
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self, depends_on=[self.log_group]),
        )

        self.service = aws.ecs.Service(
            f"{name}-service",
            cluster=self.cluster.arn,
            desired_count=desired_count,
            launch_type="FARGATE",
            task_definition=self.task_definition.arn,
            network_configuration=aws.ecs.ServiceNetworkConfigurationArgs(
                subnets=private_subnet_ids,
                security_groups=[self.task_security_group.id],
                assign_public_ip=False,
            ),
            load_balancers=[
                aws.ecs.ServiceLoadBalancerArgs(
                    target_group_arn=self.target_group.arn,
                    container_name=self.container_name,
                    container_port=container_port,
                )
            ],
            tags={**self.tags, "Name": f"{prefix}-service"},
            opts=pulumi.ResourceOptions(parent=self, depends_on=self.listeners),
        )

        self.register_outputs(
            {
                "cluster_name": self.cluster.name,
                "load_balancer_dns": self.alb.dns_name,
                "service_name": self.service.name,
                "task_definition_arn": self.task_definition.arn,
            }
        )

    def _create_listeners(
        self, name: str, certificate_arn: pulumi.Input[str] | None
    ) -> list[aws.lb.Listener]:
        """HTTP forwarding, or HTTP->HTTPS redirect plus HTTPS forwarding."""
        forward = [
            aws.lb.ListenerDefaultActionArgs(
                type="forward",
                target_group_arn=self.target_group.arn,
            )
        ]

        if certificate_arn is None:
            http = aws.lb.Listener(
                f"{name}-http",
                load_balancer_arn=self.alb.arn,
                port=80,
                protocol="HTTP",
                default_actions=forward,
                opts=pulumi.ResourceOptions(parent=self),
            )
            return [http]

        http = aws.lb.Listener(
            f"{name}-http",
            load_balancer_arn=self.alb.arn,
            port=80,
            protocol="HTTP",
            default_actions=[
                aws.lb.ListenerDefaultActionArgs(
                    type="redirect",
                    redirect=aws.lb.ListenerDefaultActionRedirectArgs(
                        port="443",
                        protocol="HTTPS",
                        status_code="HTTP_301",
                    ),
                )
            ],
            opts=pulumi.ResourceOptions(parent=self),
        )
        https = aws.lb.Listener(
            f"{name}-https",
            load_balancer_arn=self.alb.arn,
            port=443,
            protocol="HTTPS",
            ssl_policy=TLS_POLICY,
            certificate_arn=certificate_arn,
            default_actions=forward,
            opts=pulumi.ResourceOptions(parent=self),
        )
        return [http, https]
