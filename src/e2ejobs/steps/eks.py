# steps/eks.py
from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Dict, List

from .. import settings
from ..context import ExecutionContext
from .generic import CommandStep

CLUSTER_TEMPLATE = Template(
    """\
apiVersion: eksctl.io/v1alpha5
kind: ClusterConfig
metadata:
  name: ${cluster_name}
  region: ${region}
  tags:
    account: "${account_id}"
managedNodeGroups:
  - name: ${cluster_name}-ng
    instanceType: ${instance_type}
    desiredCapacity: ${node_count}
"""
)


def render_cluster_config(step: "CreateCluster", output: str | Path) -> Path:
    out = Path(output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(
        CLUSTER_TEMPLATE.substitute(
            cluster_name=step.cluster_name,
            region=step.region,
            account_id=step.account_id,
            instance_type=step.instance_type,
            node_count=step.node_count,
        ),
        encoding="utf-8",
    )
    return out


@dataclass
class CreateCluster:
    """
    Create an EKS cluster with eksctl and write its kubeconfig.

    eksctl reports an existing cluster as an error, so an already-present
    cluster is detected first and left alone.
    """
    account_id: str
    cluster_name: str
    region: str
    kubeconfig_path: str
    instance_type: str = "t3.medium"
    node_count: int = 2
    eksctl: str = settings.EKSCTL

    @property
    def name(self) -> str:
        return f"Create EKS cluster {self.cluster_name}"

    def _exists(self, ctx: ExecutionContext) -> bool:
        probe = CommandStep(
            name="get cluster",
            cmd=[self.eksctl, "get", "cluster", "--name", self.cluster_name, "--region", self.region],
        )
        try:
            probe.run(ctx)
        except Exception as e:
            ctx.log.debug("cluster %s not found: %s", self.cluster_name, e)
            return False
        return True

    def commands(self, config_path: str | Path) -> Dict[str, List[str]]:
        return {
            "create": [self.eksctl, "create", "cluster", "-f", str(config_path)],
            "kubeconfig": [
                self.eksctl, "utils", "write-kubeconfig",
                "--cluster", self.cluster_name,
                "--region", self.region,
                "--kubeconfig", self.kubeconfig_path,
            ],
        }

    def run(self, ctx: ExecutionContext) -> Dict[str, str]:
        with tempfile.TemporaryDirectory(prefix="e2ejobs-") as tmp:
            config_path = render_cluster_config(self, Path(tmp) / "cluster.yaml")
            cmds = self.commands(config_path)

            if self._exists(ctx):
                ctx.log.warning("cluster %s already exists, reusing it", self.cluster_name)
            else:
                ctx.log.info("creating cluster %s in %s", self.cluster_name, self.region)
                CommandStep(name="eksctl create cluster", cmd=cmds["create"]).run(ctx)

            CommandStep(name="eksctl write-kubeconfig", cmd=cmds["kubeconfig"]).run(ctx)

        ctx.log.success("cluster %s ready, kubeconfig at %s", self.cluster_name, self.kubeconfig_path)
        return {"cluster_name": self.cluster_name, "kubeconfig_path": self.kubeconfig_path}


@dataclass
class DeleteCluster:
    account_id: str
    cluster_name: str
    region: str
    eksctl: str = settings.EKSCTL

    @property
    def name(self) -> str:
        return f"Delete EKS cluster {self.cluster_name}"

    def command(self) -> List[str]:
        return [
            self.eksctl, "delete", "cluster",
            "--name", self.cluster_name,
            "--region", self.region,
            "--wait",
        ]

    def run(self, ctx: ExecutionContext) -> None:
        ctx.log.info("deleting cluster %s in %s", self.cluster_name, self.region)
        CommandStep(name="eksctl delete cluster", cmd=self.command()).run(ctx)
        ctx.log.success("cluster %s deleted", self.cluster_name)
        return None
