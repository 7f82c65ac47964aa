"""Domain layer for qc-reconcile.

Entities and pure services for reconciling independently programmed
datasets. This layer has no dependency on application, infrastructure or CLI
code.
"""
