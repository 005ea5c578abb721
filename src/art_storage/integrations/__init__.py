"""
Integrations Module - Object Storage Backend
============================================

blob_backend: per-call container handles over the asyncio Azure Blob client,
shared-key lookup from account connection strings
"""
