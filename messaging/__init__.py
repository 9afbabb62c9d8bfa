"""Messaging app initialization.

The messaging app stores direct and group messages and delivers them in
real time over a single WebSocket endpoint.  The in-process presence
registry is created when the app is ready; see :mod:`messaging.presence`.
"""
