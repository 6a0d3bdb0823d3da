"""Pulumi mocks shared by the infrastructure tests.

Mocks must be installed before any component creates resources, so this
runs at import time.
"""

import pulumi


class QuesoMocks(pulumi.runtime.Mocks):
    """Echo resource inputs back with the computed outputs AWS would add."""

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        outputs = {**args.inputs, "arn": f"arn:aws:mock:::{args.name}"}

        if args.typ == "aws:acm/certificate:Certificate":
            outputs["domainValidationOptions"] = [
                {
                    "domainName": args.inputs.get("domainName"),
                    "resourceRecordName": f"_validate.{args.inputs.get('domainName')}",
                    "resourceRecordType": "CNAME",
                    "resourceRecordValue": "_validate.acm-validations.aws",
                }
            ]
        elif args.typ == "aws:acm/certificateValidation:CertificateValidation":
            outputs["certificateArn"] = args.inputs.get("certificateArn")
        elif args.typ == "aws:rds/cluster:Cluster":
            outputs["endpoint"] = f"{args.name}.cluster.mock.rds.amazonaws.com"
            outputs["port"] = 5432
        elif args.typ == "random:index/randomId:RandomId":
            outputs["hex"] = "a1b2c3d4"
        elif args.typ == "random:index/randomPassword:RandomPassword":
            outputs["result"] = "p@ss/word:1"
        elif args.typ == "aws:ecr/repository:Repository":
            outputs["repositoryUrl"] = f"123456789012.dkr.ecr.us-east-1.amazonaws.com/{args.inputs.get('name')}"
            outputs["registryId"] = "123456789012"
        elif args.typ == "docker-build:index:Image":
            digest = "sha256:" + "ab" * 32
            outputs["digest"] = digest
            outputs["ref"] = f"{args.inputs['tags'][0]}@{digest}"
        elif args.typ == "aws:lb/loadBalancer:LoadBalancer":
            outputs["dnsName"] = f"{args.name}.elb.amazonaws.com"
            outputs["zoneId"] = "Z35SXDOTRQ7X7K"

        return [f"{args.name}_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        if args.token == "aws:index/getAvailabilityZones:getAvailabilityZones":
            return {"names": ["us-east-1a", "us-east-1b", "us-east-1c"], "id": "us-east-1"}
        if args.token == "aws:route53/getZone:getZone":
            return {"zoneId": "Z0123456789", "name": args.args.get("name"), "id": "Z0123456789"}
        if args.token == "aws:ecr/getAuthorizationToken:getAuthorizationToken":
            return {"userName": "AWS", "password": "token", "id": "auth"}
        return {}


pulumi.runtime.set_mocks(QuesoMocks(), project="queso", stack="dev", preview=False)
