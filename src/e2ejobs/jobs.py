# jobs.py
"""
Predefined jobs. Each "create" job has a matching "delete" job that the
caller runs explicitly; nothing is torn down automatically on failure.
"""
from __future__ import annotations

from .dsl import new_job
from .model import Job
from .steps import CreateCluster, DeleteCluster


def create_test_infra_aws(account_id: str, cluster_name: str, region: str, kubeconfig_path: str) -> Job:
    return (
        new_job("Create e2e test infrastructure AWS")
        .add_step(CreateCluster(
            account_id=account_id,
            cluster_name=cluster_name,
            region=region,
            kubeconfig_path=kubeconfig_path,
        ))
        .build()
    )


def delete_test_infra_aws(account_id: str, cluster_name: str, region: str) -> Job:
    return (
        new_job("Delete e2e test infrastructure AWS")
        .add_step(DeleteCluster(
            account_id=account_id,
            cluster_name=cluster_name,
            region=region,
        ))
        .build()
    )
