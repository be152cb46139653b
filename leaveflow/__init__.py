"""Leave approval workflow engine for the multi-tenant HR platform"""

__version__ = "1.0.0"
