"""Configuration models for the verifier and its Kubernetes connection."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class ClusterConfig(BaseModel):
    """Connection settings for a single cluster."""

    model_config = ConfigDict(extra="forbid")

    context: str = ""
    kubeconfig: str = "~/.kube/config"
    namespace: str = "default"

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str) -> str:
        """Expand ~ in kubeconfig path."""
        return str(Path(v).expanduser())


class KubernetesDefaultsConfig(BaseModel):
    """Defaults for individual API requests."""

    model_config = ConfigDict(extra="forbid")

    request_timeout: int = 30
    retry_attempts: int = 3

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: int) -> int:
        """Validate request_timeout is positive."""
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate retry_attempts allows at least one attempt."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v


class WaitDefaultsConfig(BaseModel):
    """Deadlines and poll cadence used when waiting on reconciliation.

    The issuer timeout is generous because an issuer may need to register
    with an external CA before it reports Ready; a request against a ready
    issuer is expected to be signed quickly.
    """

    model_config = ConfigDict(extra="forbid")

    issuer_timeout: float = 120.0
    request_timeout: float = 30.0
    poll_interval: float = 0.5

    @field_validator("issuer_timeout", "request_timeout", "poll_interval")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate durations are positive."""
        if v <= 0:
            raise ValueError("durations must be positive")
        return v

    @model_validator(mode="after")
    def validate_interval_below_timeouts(self) -> WaitDefaultsConfig:
        """The poll interval must fit inside every timeout."""
        if self.poll_interval >= min(self.issuer_timeout, self.request_timeout):
            raise ValueError("poll_interval must be smaller than both timeouts")
        return self


class VerifierConfig(BaseModel):
    """Complete verifier configuration."""

    model_config = ConfigDict(extra="forbid")

    clusters: dict[str, ClusterConfig] = {}
    active_cluster: str | None = None
    defaults: KubernetesDefaultsConfig = KubernetesDefaultsConfig()
    wait: WaitDefaultsConfig = WaitDefaultsConfig()
    output_format: Literal["table", "json", "yaml"] = "table"

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> VerifierConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            IV_K8S_CONTEXT: Override the active kubeconfig context
            IV_K8S_NAMESPACE: Override the default namespace
            IV_K8S_KUBECONFIG: Override the kubeconfig path
            IV_K8S_TIMEOUT: Per-request timeout in seconds
            IV_WAIT_TIMEOUT: Request issuance timeout in seconds
            IV_WAIT_ISSUER_TIMEOUT: Issuer readiness timeout in seconds
            IV_WAIT_POLL_INTERVAL: Poll interval in seconds
            IV_OUTPUT: Output format (table, json, yaml)
        """
        config_dict = base_config.copy() if base_config else {}
        defaults: dict[str, Any] = dict(config_dict.get("defaults", {}))
        wait: dict[str, Any] = dict(config_dict.get("wait", {}))
        clusters: dict[str, Any] = {
            name: dict(cluster) if isinstance(cluster, dict) else cluster
            for name, cluster in config_dict.get("clusters", {}).items()
        }

        kubeconfig_override = os.environ.get("IV_K8S_KUBECONFIG")
        namespace_override = os.environ.get("IV_K8S_NAMESPACE")

        if context := os.environ.get("IV_K8S_CONTEXT"):
            config_dict["active_cluster"] = context

        if (kubeconfig_override or namespace_override) and not clusters:
            clusters["default"] = {}
            config_dict.setdefault("active_cluster", "default")

        if timeout := os.environ.get("IV_K8S_TIMEOUT"):
            defaults["request_timeout"] = int(timeout)
        if wait_timeout := os.environ.get("IV_WAIT_TIMEOUT"):
            wait["request_timeout"] = float(wait_timeout)
        if issuer_timeout := os.environ.get("IV_WAIT_ISSUER_TIMEOUT"):
            wait["issuer_timeout"] = float(issuer_timeout)
        if poll_interval := os.environ.get("IV_WAIT_POLL_INTERVAL"):
            wait["poll_interval"] = float(poll_interval)
        if output_format := os.environ.get("IV_OUTPUT"):
            config_dict["output_format"] = output_format

        config_dict["defaults"] = defaults
        config_dict["wait"] = wait
        config_dict["clusters"] = clusters

        instance = cls.model_validate(config_dict)

        if kubeconfig_override:
            for cluster_cfg in instance.clusters.values():
                cluster_cfg.kubeconfig = str(Path(kubeconfig_override).expanduser())
        if namespace_override:
            for cluster_cfg in instance.clusters.values():
                cluster_cfg.namespace = namespace_override

        return instance

    def get_active_cluster(self) -> ClusterConfig | None:
        """Return the configured cluster the verifier talks to, if any."""
        if self.active_cluster and self.active_cluster in self.clusters:
            return self.clusters[self.active_cluster]
        if self.clusters:
            return next(iter(self.clusters.values()))
        return None

    def get_active_context(self) -> str | None:
        """Get the kubeconfig context name to load.

        Returns the named cluster's context, the raw ``active_cluster`` value
        when it does not name a configured cluster, or None to let the
        kubeconfig's current-context decide.
        """
        if self.active_cluster and self.active_cluster not in self.clusters:
            return self.active_cluster
        cluster = self.get_active_cluster()
        if cluster and cluster.context:
            return cluster.context
        return None

    def get_active_namespace(self) -> str:
        """Get the default namespace, or 'default' if no cluster is configured."""
        cluster = self.get_active_cluster()
        return cluster.namespace if cluster else "default"
