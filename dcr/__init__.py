"""Dangling Container Reconciler (DCR).

Per-node daemon that compares the containers running on the local Docker
daemon with the containers Kubernetes has scheduled on the same node, and
reports (or stops) the ones Kubernetes no longer knows about:
 - concurrent inventory fetch from Docker and the Kubernetes API
 - substring-based orphan detection with an image whitelist
 - watch/remove actions published as node events

Each instance only reasons about its own node.
"""
