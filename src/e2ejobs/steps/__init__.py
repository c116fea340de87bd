from .generic import CommandStep, LoadFlags
from .eks import CreateCluster, DeleteCluster

__all__ = ["CommandStep", "LoadFlags", "CreateCluster", "DeleteCluster"]
