# e2e_workflow.py
# Example workflow for `e2ejobs run e2e_workflow.py`: provision an EKS cluster,
# check it with a small scenario, then tear it down in a separate job.
from __future__ import annotations

import os

from e2ejobs.dsl import ScenarioBuilder, new_job, wf
from e2ejobs.jobs import create_test_infra_aws, delete_test_infra_aws
from e2ejobs.steps import CommandStep, LoadFlags

ACCOUNT_ID = os.environ.get("AWS_ACCOUNT_ID", "")
CLUSTER = os.environ.get("E2E_CLUSTER_NAME", "e2e-test")
REGION = os.environ.get("AWS_REGION", "us-west-2")
KUBECONFIG = os.path.abspath("./test.pem")


def node_scenario(kubeconfig: str):
    # parameters are bound here, the scenario never reads the job context
    return (
        ScenarioBuilder("Nodes are ready")
        .add_step(CommandStep(
            name="List nodes",
            cmd=["kubectl", "--kubeconfig", kubeconfig, "get", "nodes", "-o", "name"],
            output_key="nodes",
        ))
        .add_step(CommandStep(
            name="Wait for nodes",
            cmd=["kubectl", "--kubeconfig", kubeconfig, "wait", "--for=condition=Ready", "nodes", "--all", "--timeout=300s"],
        ))
        .build()
    )


def jobs():
    validate = (
        new_job("Validate e2e test infrastructure")
        .add_step(LoadFlags())
        .add_scenario(node_scenario(KUBECONFIG))
    )
    # delete is the compensating job: it runs only if everything above passed,
    # otherwise invoke `e2ejobs delete cluster` by hand
    return wf(
        create_test_infra_aws(ACCOUNT_ID, CLUSTER, REGION, KUBECONFIG),
        validate,
        delete_test_infra_aws(ACCOUNT_ID, CLUSTER, REGION),
    )
