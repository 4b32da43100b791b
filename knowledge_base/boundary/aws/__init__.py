"""
AWS service adapters.
"""

from knowledge_base.boundary.aws.secrets import SecretRetriever

__all__ = ["SecretRetriever"]
