"""Application layer: services that sit between the API and storage.

Depends only on domain and the storage protocol (DIP).
"""
