"""VPC Component - Network foundation for Queso.

One public and one private subnet per availability zone:
- Public subnets: the load balancer and NAT gateways
- Private subnets: ECS tasks and the Aurora cluster
"""

import pulumi
import pulumi_aws as aws

DEFAULT_PUBLIC_CIDRS = ["10.0.1.0/24", "10.0.2.0/24"]
DEFAULT_PRIVATE_CIDRS = ["10.0.3.0/24", "10.0.4.0/24"]


class VPCComponent(pulumi.ComponentResource):
    """VPC with public/private subnets, NAT egress for the private side."""

    def __init__(
        self,
        name: str,
        environment: str,
        cidr_block: str = "10.0.0.0/16",
        public_subnet_cidrs: list[str] | None = None,
        private_subnet_cidrs: list[str] | None = None,
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("queso:network:VPC", name, None, opts)

        self.tags = tags or {}
        self.environment = environment
        self.resource_name = name

        public_cidrs = list(public_subnet_cidrs or DEFAULT_PUBLIC_CIDRS)
        private_cidrs = list(private_subnet_cidrs or DEFAULT_PRIVATE_CIDRS)
        if len(public_cidrs) != len(private_cidrs):
            raise ValueError("public and private subnet CIDR lists must have the same length")

        zones = aws.get_availability_zones(state="available").names
        if len(zones) < len(public_cidrs):
            raise ValueError(
                f"{len(public_cidrs)} subnet pairs requested but only "
                f"{len(zones)} availability zones are available"
            )
        zones = zones[: len(public_cidrs)]

        self.vpc = aws.ec2.Vpc(
            f"{name}-vpc",
            cidr_block=cidr_block,
            enable_dns_hostnames=True,
            enable_dns_support=True,
            tags=self._tags(f"{name}-vpc"),
            opts=self._child(),
        )

        self.igw = aws.ec2.InternetGateway(
            f"{name}-igw",
            vpc_id=self.vpc.id,
            tags=self._tags(f"{name}-igw"),
            opts=self._child(),
        )

        self.public_subnets = [
            self._subnet(f"public-{i}", cidr, az, public=True)
            for i, (cidr, az) in enumerate(zip(public_cidrs, zones))
        ]
        self.private_subnets = [
            self._subnet(f"private-{i}", cidr, az, public=False)
            for i, (cidr, az) in enumerate(zip(private_cidrs, zones))
        ]

        # Prod gets a NAT per zone; other stacks share one
        nat_count = len(zones) if environment == "prod" else 1
        self.nat_gateways = [self._nat_gateway(i, zones[i]) for i in range(nat_count)]

        self._route_public()
        self._route_private()

        self.public_subnet_ids = pulumi.Output.all(*[s.id for s in self.public_subnets]).apply(list)
        self.private_subnet_ids = pulumi.Output.all(*[s.id for s in self.private_subnets]).apply(
            list
        )
        self.private_subnet_cidrs = private_cidrs

        self.register_outputs(
            {
                "vpc_id": self.vpc.id,
                "public_subnet_ids": self.public_subnet_ids,
                "private_subnet_ids": self.private_subnet_ids,
            }
        )

    def _child(self, **kwargs) -> pulumi.ResourceOptions:
        return pulumi.ResourceOptions(parent=self, **kwargs)

    def _tags(self, resource_name: str) -> dict:
        return {**self.tags, "Name": resource_name}

    def _subnet(self, suffix: str, cidr: str, az: str, public: bool) -> aws.ec2.Subnet:
        kind = "public" if public else "private"
        return aws.ec2.Subnet(
            f"{self.resource_name}-{suffix}",
            vpc_id=self.vpc.id,
            cidr_block=cidr,
            availability_zone=az,
            map_public_ip_on_launch=public,
            tags=self._tags(f"{self.resource_name}-{kind}-{az}"),
            opts=self._child(),
        )

    def _nat_gateway(self, index: int, az: str) -> aws.ec2.NatGateway:
        eip = aws.ec2.Eip(
            f"{self.resource_name}-eip-{index}",
            domain="vpc",
            tags=self._tags(f"{self.resource_name}-nat-eip-{az}"),
            opts=self._child(),
        )
        return aws.ec2.NatGateway(
            f"{self.resource_name}-nat-{index}",
            subnet_id=self.public_subnets[index].id,
            allocation_id=eip.id,
            tags=self._tags(f"{self.resource_name}-nat-{az}"),
            opts=self._child(depends_on=[self.igw]),
        )

    def _route_public(self) -> None:
        self.public_rt = aws.ec2.RouteTable(
            f"{self.resource_name}-public-rt",
            vpc_id=self.vpc.id,
            routes=[aws.ec2.RouteTableRouteArgs(cidr_block="0.0.0.0/0", gateway_id=self.igw.id)],
            tags=self._tags(f"{self.resource_name}-public-rt"),
            opts=self._child(),
        )
        for i, subnet in enumerate(self.public_subnets):
            aws.ec2.RouteTableAssociation(
                f"{self.resource_name}-public-rta-{i}",
                subnet_id=subnet.id,
                route_table_id=self.public_rt.id,
                opts=self._child(),
            )

    def _route_private(self) -> None:
        self.private_rts: list[aws.ec2.RouteTable] = []
        for i, subnet in enumerate(self.private_subnets):
            nat = self.nat_gateways[min(i, len(self.nat_gateways) - 1)]
            route_table = aws.ec2.RouteTable(
                f"{self.resource_name}-private-rt-{i}",
                vpc_id=self.vpc.id,
                routes=[aws.ec2.RouteTableRouteArgs(cidr_block="0.0.0.0/0", nat_gateway_id=nat.id)],
                tags=self._tags(f"{self.resource_name}-private-rt-{i}"),
                opts=self._child(),
            )
            self.private_rts.append(route_table)
            aws.ec2.RouteTableAssociation(
                f"{self.resource_name}-private-rta-{i}",
                subnet_id=subnet.id,
                route_table_id=route_table.id,
                opts=self._child(),
            )
