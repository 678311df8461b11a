"""
Service functions used by the verification email pipeline.

This package contains configuration resolution, message composition and
DynamoDB record operations.
"""

__all__ = ['config', 'composer', 'dynamodb']
