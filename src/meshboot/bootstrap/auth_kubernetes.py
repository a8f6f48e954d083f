# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Kubernetes auth method setup.

When Kubernetes integration is enabled, workloads log in through a
``kubernetes`` auth method instead of receiving pre-minted service tokens.
The auth method is configured from material staged in the credential cache
directory by the cluster provisioning step:

    k8s/config_host   API server URL
    k8s/config_ca     API server CA certificate (PEM)
    k8s/jwt_token     service account JWT used for token review
"""

from __future__ import annotations

import logging

from meshboot.bootstrap import util_acl
from meshboot.bootstrap.bootstrap_context import BootstrapContext
from meshboot.bootstrap.util_phase_error_context import bootstrap_phase_error_context
from meshboot.handlers import ConsulClient

logger = logging.getLogger(__name__)

AUTH_METHOD_NAME: str = "minikube"
AUTH_METHOD_TYPE: str = "kubernetes"
BINDING_RULE_DESCRIPTION: str = "devconsul--default"
SERVICE_ACCOUNT_BIND_NAME: str = "${serviceaccount.name}"

K8S_HOST_FILE: str = "k8s/config_host"
K8S_CA_FILE: str = "k8s/config_ca"
K8S_JWT_FILE: str = "k8s/jwt_token"


class KubernetesAuthConfigurator:
    """Creates the Kubernetes auth method and its service binding rule."""

    def __init__(self, ctx: BootstrapContext) -> None:
        self._ctx = ctx

    def initialize(self, cluster: str, client: ConsulClient) -> None:
        with bootstrap_phase_error_context(
            "initialize_kubernetes", cluster=cluster, correlation_id=self._ctx.correlation_id
        ):
            self.create_auth_method(cluster, client)
            self.create_binding_rule(cluster, client)

    def create_auth_method(self, cluster: str, client: ConsulClient) -> None:
        cache = self._ctx.cache
        method = {
            "Name": AUTH_METHOD_NAME,
            "Type": AUTH_METHOD_TYPE,
            "Config": {
                "Host": cache.load_string_file(K8S_HOST_FILE),
                "CACert": cache.load_string_file(K8S_CA_FILE),
                "ServiceAccountJWT": cache.load_string_file(K8S_JWT_FILE),
            },
        }
        util_acl.create_or_update_auth_method(client, method)
        logger.info(
            "Auth method configured",
            extra=self._ctx.log_extra(
                cluster=cluster, auth_method=AUTH_METHOD_NAME, auth_type=AUTH_METHOD_TYPE
            ),
        )

    def create_binding_rule(self, cluster: str, client: ConsulClient) -> None:
        rule = util_acl.create_or_update_binding_rule(
            client,
            {
                "AuthMethod": AUTH_METHOD_NAME,
                "Description": BINDING_RULE_DESCRIPTION,
                "Selector": "",
                "BindType": "service",
                "BindName": SERVICE_ACCOUNT_BIND_NAME,
            },
        )
        logger.info(
            "Binding rule configured",
            extra=self._ctx.log_extra(
                cluster=cluster, auth_method=AUTH_METHOD_NAME, rule_id=rule.get("ID", "")
            ),
        )


__all__: list[str] = [
    "AUTH_METHOD_NAME",
    "BINDING_RULE_DESCRIPTION",
    "K8S_CA_FILE",
    "K8S_HOST_FILE",
    "K8S_JWT_FILE",
    "KubernetesAuthConfigurator",
]
