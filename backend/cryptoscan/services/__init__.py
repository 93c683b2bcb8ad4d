"""
Cryptoscan Services

Service layer containing the analysis engine.
Each service has a defined interface (contract) and implementation.
"""

from cryptoscan.services.base import BaseService, ServiceError

__all__ = ["BaseService", "ServiceError"]
