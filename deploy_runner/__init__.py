from .artifacts import Artifact, ArtifactError, ArtifactStore
from .deployer import DeployedContract, DeployerError, connect, deploy_module
from .journal import DeploymentJournal, JournalError


__all__ = [
    'Artifact',
    'ArtifactError',
    'ArtifactStore',
    'DeployedContract',
    'DeployerError',
    'DeploymentJournal',
    'JournalError',
    'connect',
    'deploy_module',
]
