"""Assistant Orb - conversation session manager for the CRM's floating AI chat widget."""

__version__ = "1.0.0"
