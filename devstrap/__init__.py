"""devstrap — idempotent bootstrap for developer workstations and VPS hosts."""

__version__ = "0.1.0"
