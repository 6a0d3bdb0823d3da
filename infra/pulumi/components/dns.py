"""DNS Component - ACM certificate and Route 53 alias for the public domain."""

import pulumi
import pulumi_aws as aws


class DNSComponent(pulumi.ComponentResource):
    """Validated certificate for ``domain_name`` (and ``*.domain_name``).

    The certificate is needed by the HTTPS listener, which in turn must
    exist before the alias can point at the load balancer, so the alias is
    added afterwards with ``create_alias``.
    """

    def __init__(
        self,
        name: str,
        domain_name: str,
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("queso:network:DNS", name, None, opts)

        self.tags = tags or {}
        self.resource_name = name
        self.domain_name = domain_name
        self.alias_record: aws.route53.Record | None = None

        zone = aws.route53.get_zone(name=domain_name, private_zone=False)
        self.zone_id = zone.zone_id

        self.certificate = aws.acm.Certificate(
            f"{name}-certificate",
            domain_name=domain_name,
            validation_method="DNS",
            subject_alternative_names=[f"*.{domain_name}"],
            tags={**self.tags, "Name": f"{name}-certificate"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # The apex and wildcard share one validation record
        validation_option = self.certificate.domain_validation_options[0]
        self.validation_record = aws.route53.Record(
            f"{name}-certificate-validation",
            name=validation_option.resource_record_name,
            type=validation_option.resource_record_type,
            zone_id=self.zone_id,
            records=[validation_option.resource_record_value],
            ttl=60,
            allow_overwrite=True,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.certificate_validation = aws.acm.CertificateValidation(
            f"{name}-certificate-validation",
            certificate_arn=self.certificate.arn,
            validation_record_fqdns=[self.validation_record.fqdn],
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.certificate_arn = self.certificate_validation.certificate_arn

        self.register_outputs(
            {
                "certificate_arn": self.certificate_arn,
                "zone_id": self.zone_id,
            }
        )

    def create_alias(self, alb: aws.lb.LoadBalancer) -> aws.route53.Record:
        """Point the domain's A record at the load balancer."""
        self.alias_record = aws.route53.Record(
            f"{self.resource_name}-alb-alias",
            name=self.domain_name,
            type="A",
            zone_id=self.zone_id,
            aliases=[
                aws.route53.RecordAliasArgs(
                    name=alb.dns_name,
                    zone_id=alb.zone_id,
                    evaluate_target_health=True,
                )
            ],
            opts=pulumi.ResourceOptions(parent=self),
        )
        return self.alias_record
