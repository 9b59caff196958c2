"""lrpbridge: platform app desires -> Kubernetes workloads.

Desire requests are converted into LRPs (long-running processes) and
reconciled onto a namespace as a Deployment or StatefulSet, a stable Service,
an optional headless Service and a routing update. Staging runs as bounded
one-shot Jobs.

The cluster is the only state; nothing is cached or persisted here.
"""
