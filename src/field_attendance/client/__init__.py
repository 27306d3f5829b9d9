"""Device-side half of the sync pipeline.

The local store keeps every capture until the server confirms it; the
reconciler re-drives whatever is still pending.
"""
