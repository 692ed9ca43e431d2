"""CLI command groups.

- config: Manage ~/.openadr/config.yaml
- index: Inspect the event index
- ven: Run a VEN client
- demo: In-process end-to-end scenario
"""
