"""Inventory models.

Immutable snapshots of what is currently installed on the system,
as reported by DISM, the servicing registry and pnputil.
"""

from dataclasses import dataclass, field

from wuctl.models.update import UpdateRecord


@dataclass(frozen=True, slots=True)
class PackageInventoryEntry:
    """An installed servicing package reported by DISM.

    Attributes:
        identity: Package identity (e.g. 'Package_for_RollupFix~31bf...~26100.3194.1.10').
        state: Install state as reported by DISM (e.g. 'Installed').
    """

    identity: str
    state: str = ""

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.identity:
            msg = "Package identity cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class DriverInventoryEntry:
    """A third-party driver package reported by pnputil.

    Attributes:
        inf_name: Published inf name (e.g. 'oem12.inf').
        original_name: Original inf file name.
        provider: Driver provider name.
        device_class: Device class name.
        version: Driver version and date string.
        signer: Signer name.
    """

    inf_name: str
    original_name: str = ""
    provider: str = ""
    device_class: str = ""
    version: str = ""
    signer: str = ""

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.inf_name:
            msg = "Driver inf name cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class InventorySnapshot:
    """Joint result of one inventory collection.

    Matching needs all four parts at once, so they travel together.
    """

    records: list[UpdateRecord] = field(default_factory=list)
    packages: list[PackageInventoryEntry] = field(default_factory=list)
    secondary_names: list[str] = field(default_factory=list)
    drivers: list[DriverInventoryEntry] = field(default_factory=list)
