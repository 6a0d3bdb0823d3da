"""Image Component - builds the API image and pushes it to ECR."""

import pulumi
import pulumi_aws as aws
import pulumi_docker_build as docker_build


class ImageComponent(pulumi.ComponentResource):
    """linux/amd64 image built with BuildKit and pushed to an ECR repository."""

    def __init__(
        self,
        name: str,
        repository: aws.ecr.Repository,
        context: str,
        dockerfile: str,
        image_tag: str = "latest",
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("queso:container:Image", name, None, opts)

        self.tags = tags or {}

        auth_token = aws.ecr.get_authorization_token_output(
            registry_id=repository.registry_id,
        )

        self.image_uri = repository.repository_url.apply(lambda url: f"{url}:{image_tag}")

        self.image = docker_build.Image(
            f"{name}-image",
            context=docker_build.BuildContextArgs(location=context),
            dockerfile=docker_build.DockerfileArgs(location=dockerfile),
            platforms=["linux/amd64"],  # Fargate runs x86_64
            tags=[self.image_uri],
            push=True,
            registries=[
                docker_build.RegistryArgs(
                    address=repository.repository_url,
                    username=auth_token.user_name,
                    password=pulumi.Output.secret(auth_token.password),
                )
            ],
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Digest-pinned; a rebuild pushed under the same tag still changes it
        self.image_ref = self.image.ref

        self.register_outputs(
            {
                "image_uri": self.image_uri,
                "image_ref": self.image_ref,
                "digest": self.image.digest,
            }
        )
