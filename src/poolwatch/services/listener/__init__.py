"""Notification filtering: snipe list, de-duplication, handlers and dispatch.

Import from the submodules directly; the refresh worker depends on
`allow_list` and the service depends on the worker.
"""
