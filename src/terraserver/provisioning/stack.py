"""
CDK composition for the whole deployment.

``build_server`` adds every resource to a scope and hands back what it
built. There is no Stack subclass; ``synth`` creates a plain Stack and
passes it in.

    VPC (public subnets, DNS on)
      └─ security group: game TCP+UDP, admin TCP, from anywhere
           └─ EC2 instance (Docker + game server via user data)
    Lambdas: start / stop / status / auth, one EC2 action each
    REST API: POST /start, POST /stop (authorizer), GET /status

With ``instance_id`` set in the config, the VPC, security group and
instance are skipped and the Lambdas target that instance instead.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import aws_cdk as cdk
from aws_cdk import aws_apigateway as apigw
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from constructs import Construct

from ..models import ServerConfig
from .user_data import bootstrap_commands

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parents[1]
STAGING_DIR = "lambda-src"

LAMBDA_RUNTIME = lambda_.Runtime.PYTHON_3_12

# route -> (HTTP method, handler module, EC2 action, needs authorizer)
ROUTES = {
    "start": ("POST", "start", "ec2:StartInstances", True),
    "stop": ("POST", "stop", "ec2:StopInstances", True),
    "status": ("GET", "status", "ec2:DescribeInstanceStatus", False),
}

# Actions that accept an instance ARN; the rest need "*".
_RESOURCE_SCOPED = {"ec2:StartInstances", "ec2:StopInstances"}


def stage_handlers(outdir: str) -> Path:
    """Copy just the Lambda code into the cloud assembly directory for the asset.

    The asset holds ``terraserver/__init__.py`` and ``terraserver/handlers``
    so ``terraserver.handlers.<name>.handler`` resolves in the runtime
    without bundling the CLI or CDK code.
    """
    staging = Path(outdir) / STAGING_DIR
    if staging.exists():
        shutil.rmtree(staging)
    target = staging / "terraserver"
    target.mkdir(parents=True)
    shutil.copy2(PACKAGE_DIR / "__init__.py", target / "__init__.py")
    shutil.copytree(
        PACKAGE_DIR / "handlers",
        target / "handlers",
        ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
    )
    logger.debug("Staged Lambda handlers in %s", staging)
    return staging


@dataclass(frozen=True)
class ServerResources:
    """What build_server created, for outputs and tests."""

    instance_id: str
    functions: Dict[str, lambda_.Function]
    api: apigw.RestApi
    authorizer: apigw.RequestAuthorizer
    vpc: Optional[ec2.Vpc] = None
    security_group: Optional[ec2.SecurityGroup] = None
    instance: Optional[ec2.Instance] = None
    policies: Dict[str, iam.Policy] = field(default_factory=dict)


def build_user_data(config: ServerConfig) -> ec2.UserData:
    """Wrap the bootstrap commands as multipart user data."""
    user_data = ec2.MultipartUserData()
    commands = ec2.UserData.for_linux()
    user_data.add_user_data_part(commands, ec2.MultipartBody.SHELL_SCRIPT, True)
    user_data.add_commands(*bootstrap_commands(config))
    return user_data


def _network(scope: Construct, config: ServerConfig):
    app = config.app_name
    vpc = ec2.Vpc(
        scope,
        f"{app}VPC",
        enable_dns_hostnames=True,
        enable_dns_support=True,
        nat_gateways=0,
        subnet_configuration=[
            ec2.SubnetConfiguration(
                name="Public",
                subnet_type=ec2.SubnetType.PUBLIC,
                cidr_mask=24,
            )
        ],
    )

    security_group = ec2.SecurityGroup(
        scope,
        f"{app}SecurityGroup",
        vpc=vpc,
        description="Access to server ports for ec2 instance",
    )
    security_group.add_ingress_rule(
        ec2.Peer.any_ipv4(), ec2.Port.tcp(config.game_port), f"Allow {app} server connections",
    )
    security_group.add_ingress_rule(
        ec2.Peer.any_ipv4(), ec2.Port.udp(config.game_port), f"Allow {app} server connections",
    )
    # Admin port admits any IPv4 source, same as the game ports.
    security_group.add_ingress_rule(
        ec2.Peer.any_ipv4(), ec2.Port.tcp(config.admin_port), "allow ssh access from the world",
    )
    return vpc, security_group


def _instance(scope: Construct, config: ServerConfig, vpc, security_group) -> ec2.Instance:
    app = config.app_name
    return ec2.Instance(
        scope,
        f"{app}Server",
        vpc=vpc,
        vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
        instance_type=ec2.InstanceType(config.instance_type),
        key_pair=ec2.KeyPair.from_key_pair_name(scope, f"{app}KeyPair", config.key_name),
        machine_image=ec2.MachineImage.latest_amazon_linux2(),
        security_group=security_group,
        user_data=build_user_data(config),
        user_data_causes_replacement=True,
    )


def _function(
    scope: Construct, name: str, module: str, environment: Dict[str, str], code: lambda_.Code,
) -> lambda_.Function:
    return lambda_.Function(
        scope,
        name,
        function_name=name,
        runtime=LAMBDA_RUNTIME,
        handler=f"terraserver.handlers.{module}.handler",
        code=code,
        environment=environment,
    )


def _grant(scope: Construct, fn: lambda_.Function, policy_id: str, action: str, instance_arn: str) -> iam.Policy:
    resource = instance_arn if action in _RESOURCE_SCOPED else "*"
    grant = iam.Policy(
        scope,
        policy_id,
        document=iam.PolicyDocument(
            statements=[iam.PolicyStatement(actions=[action], resources=[resource])],
        ),
    )
    fn.role.attach_inline_policy(grant)
    return grant


def _policy_id(app: str, route: str) -> str:
    if route == "status":
        return f"{app}Ec2StatusPolicy"
    return f"{route.capitalize()}{app}Ec2Policy"


def _function_name(app: str, route: str) -> str:
    if route == "status":
        return f"{app}ServerStatusLambda"
    return f"{route.capitalize()}{app}ServerLambda"


def build_server(scope: Construct, config: ServerConfig, password: str) -> ServerResources:
    """Add the whole deployment to ``scope``.

    Args:
        scope: Usually a Stack.
        config: Deployment settings.
        password: Shared secret for the authorizer.

    Returns:
        ServerResources describing every top-level resource.
    """
    app = config.app_name

    # An existing instance in config is the target; nothing else gets built for it.
    vpc = security_group = instance = None
    if config.instance_id:
        instance_id = config.instance_id
    else:
        vpc, security_group = _network(scope, config)
        instance = _instance(scope, config, vpc, security_group)
        instance_id = instance.instance_id
    instance_arn = cdk.Stack.of(scope).format_arn(
        service="ec2", resource="instance", resource_name=instance_id,
    )

    code = lambda_.Code.from_asset(str(stage_handlers(cdk.Stage.of(scope).outdir)))
    functions: Dict[str, lambda_.Function] = {}
    policies: Dict[str, iam.Policy] = {}
    for route, (_method, module, action, _auth) in ROUTES.items():
        fn = _function(scope, _function_name(app, route), module, {"INSTANCE_ID": instance_id}, code)
        functions[route] = fn
        policies[route] = _grant(scope, fn, _policy_id(app, route), action, instance_arn)

    functions["auth"] = _function(
        scope, f"{app}ServerAuthLambda", "auth", {"PASSWORD": password}, code,
    )

    api = apigw.RestApi(
        scope,
        f"{app}ServerApi",
        default_cors_preflight_options=apigw.CorsOptions(
            allow_origins=apigw.Cors.ALL_ORIGINS,
            allow_methods=apigw.Cors.ALL_METHODS,
            allow_headers=["Authorization"],
        ),
    )
    authorizer = apigw.RequestAuthorizer(
        scope,
        f"{app}ServerAuthorizer",
        handler=functions["auth"],
        identity_sources=[apigw.IdentitySource.header("Authorization")],
        results_cache_ttl=cdk.Duration.seconds(0),
    )

    for route, (method, _module, _action, needs_auth) in ROUTES.items():
        api.root.add_resource(route).add_method(
            method,
            apigw.LambdaIntegration(functions[route]),
            authorizer=authorizer if needs_auth else None,
        )

    cdk.CfnOutput(scope, "InstanceId", value=instance_id)
    cdk.CfnOutput(scope, "ApiUrl", value=api.url)

    logger.info("Built %s server resources targeting %s", app, config.instance_id or "a new instance")

    return ServerResources(
        vpc=vpc,
        security_group=security_group,
        instance=instance,
        instance_id=instance_id,
        functions=functions,
        api=api,
        authorizer=authorizer,
        policies=policies,
    )


def synth(
    config: ServerConfig,
    password: str,
    outdir: Optional[str] = None,
    account: Optional[str] = None,
):
    """Build an App with one Stack holding the deployment and synthesize it.

    Returns:
        (cloud assembly, ServerResources)
    """
    app = cdk.App(outdir=outdir) if outdir else cdk.App()
    stack = cdk.Stack(
        app,
        f"{config.app_name}ServerStack",
        env=cdk.Environment(account=account, region=config.region),
    )
    resources = build_server(stack, config, password)
    return app.synth(), resources
