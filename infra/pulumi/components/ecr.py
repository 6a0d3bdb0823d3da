"""ECR Component - Container Registry for Queso.

Creates the ECR repository the API image is pushed to.
"""

import json

import pulumi
import pulumi_aws as aws

from components.policies import ecr_lifecycle_policy


class ECRComponent(pulumi.ComponentResource):
    """ECR repository for the API image."""

    def __init__(
        self,
        name: str,
        repository_name: str,
        keep_images: int = 5,
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("queso:container:ECR", name, None, opts)

        self.tags = tags or {}

        self.repository = aws.ecr.Repository(
            f"{name}-repo",
            name=repository_name,
            image_tag_mutability="MUTABLE",
            image_scanning_configuration=aws.ecr.RepositoryImageScanningConfigurationArgs(
                scan_on_push=True,
            ),
            force_delete=True,
            tags={**self.tags, "Name": f"{name}-repo"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Lifecycle policy to limit image count and reduce costs
        aws.ecr.LifecyclePolicy(
            f"{name}-lifecycle",
            repository=self.repository.name,
            policy=json.dumps(ecr_lifecycle_policy(keep_images)),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.repository_url = self.repository.repository_url

        self.register_outputs(
            {
                "repository_url": self.repository.repository_url,
                "repository_name": self.repository.name,
            }
        )
