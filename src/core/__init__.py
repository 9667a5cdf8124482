"""Core domain package for asfclaim.

Core contains response parsing, connectivity gating, notification dispatch,
and the claim cycle without any HTTP or storage-specific code, keeping the
business logic portable.
"""

__version__ = "1.0.0"
