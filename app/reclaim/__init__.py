"""reclaim - unattended disk and memory reclamation for Linux workstations."""

__version__ = "0.1.0"
