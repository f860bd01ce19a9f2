"""Data types and dataclasses for deploy-orchestrator."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from .chain import ChainClient, ContractHandle


@dataclass
class BuildContext:
    """Arguments handed to constructor-argument builders and after-deploy hooks."""

    chain: "ChainClient"
    deployer_address: str
    contracts: Dict[str, "ContractHandle"]  # Handles deployed or bound so far
    context: Dict[str, Any]  # Shared mutable accumulator for the whole run


ArgumentBuilder = Callable[[BuildContext], List[Any]]
AfterDeployHook = Callable[[BuildContext], Any]


def _no_arguments(ctx: BuildContext) -> List[Any]:
    return []


@dataclass(frozen=True)
class ContractSpec:
    """How to deploy one contract."""

    # Required fields
    name: str  # Unique key, e.g., "RevenueSplitter"

    # Optional fields
    depends_on: tuple[str, ...] = ()
    constructor_arguments: ArgumentBuilder = _no_arguments
    value: int = 0  # Wei sent with the creation transaction
    display_properties: tuple[str, ...] = ()
    after_deploy: Optional[AfterDeployHook] = None
    artifact: Optional[str] = None  # Artifact name, defaults to `name`

    @property
    def artifact_name(self) -> str:
        return self.artifact or self.name


@dataclass
class DeploymentConfig:
    """Loaded configuration document."""

    contracts: Dict[str, ContractSpec]  # Declaration order is preserved
    deployer_address: Callable[[List[str]], Optional[str]]
    context: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None  # Path the config was loaded from


@dataclass(frozen=True)
class ContinuationRef:
    """Identifies a completed deployment that the current run extends."""

    network: str
    completed_at: int  # Unix timestamp in milliseconds

    @property
    def identity(self) -> str:
        return f"{self.network}-{self.completed_at}"

    def to_dict(self) -> Dict[str, Any]:
        return {"network": self.network, "completedAt": self.completed_at}


@dataclass
class DeployedContract:
    """A contract deployed (or bound) during the current run."""

    name: str
    handle: "ContractHandle"
    constructor_args: Optional[List[Any]] = None  # None when bound to an existing address
    bound: bool = False  # True when found already deployed rather than created

    @property
    def address(self) -> str:
        return self.handle.address


@dataclass
class VerificationResult:
    """Outcome of one explorer verification submission."""

    name: str
    address: str
    success: bool
    message: str = ""
