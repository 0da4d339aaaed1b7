"""Workflow runtime: operation appliers, dispatch, and the transactional engine."""
