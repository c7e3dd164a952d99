"""
Result objects for core operations.

Provides a unified result structure that the CLI uses to display
operation outcomes consistently.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any


@dataclass
class OperationResult:
    """
    Unified result object for core operations.

    Attributes:
        ok: Whether the operation completed successfully
        operation: Name of the operation (e.g., "flash_firmware")
        target: Flash target name
        firmware_path: Selected firmware file
        destination: Bootloader volume the firmware was copied to
        bytes_len: Number of bytes copied
        warnings: Non-blocking issues encountered
        errors: Blocking errors that caused failure
        metadata: Additional operation-specific data
    """
    ok: bool
    operation: str
    target: str = ""
    firmware_path: str = ""
    destination: str = ""
    bytes_len: int = 0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        """Add an error message and mark result as failed."""
        self.errors.append(message)
        self.ok = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ok": self.ok,
            "operation": self.operation,
            "target": self.target,
            "firmware_path": self.firmware_path,
            "destination": self.destination,
            "bytes_len": self.bytes_len,
            "warnings": self.warnings,
            "errors": self.errors,
            "metadata": self.metadata,
        }

    @classmethod
    def success(cls, operation: str, target: str = "", **kwargs) -> "OperationResult":
        """Create a successful result."""
        return cls(ok=True, operation=operation, target=target, **kwargs)

    @classmethod
    def failure(cls, operation: str, error: str, target: str = "", **kwargs) -> "OperationResult":
        """Create a failed result."""
        result = cls(ok=False, operation=operation, target=target, **kwargs)
        result.errors.append(error)
        return result
